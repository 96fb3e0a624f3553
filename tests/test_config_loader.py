import json
from pathlib import Path

import pytest

from pricetools.core.config_loader import (
    EXAMPLE_DATABASE_URL,
    ConfigError,
    PluginConfig,
    config_schema,
    load_config,
)

URL = "postgresql://u:p@db:5432/products"


def test_defaults_from_mapping():
    cfg = load_config({"database_url": URL})
    assert cfg.database_url == URL
    assert cfg.max_connections == 5
    assert cfg.timeout_seconds == 30


def test_passthrough_plugin_config():
    cfg = PluginConfig(database_url=URL, max_connections=7)
    assert load_config(cfg) is cfg


@pytest.mark.parametrize(
    "data, field",
    [
        ({"database_url": URL, "max_connections": 0}, "max_connections"),
        ({"database_url": URL, "max_connections": 101}, "max_connections"),
        ({"database_url": URL, "timeout_seconds": 0}, "timeout_seconds"),
        ({"database_url": ""}, "database_url"),
        ({}, "database_url"),
    ],
)
def test_invalid_values_are_rejected(data, field):
    with pytest.raises(ConfigError, match=field):
        load_config(data)


def test_json_string():
    cfg = load_config(json.dumps({"database_url": URL, "timeout_seconds": 5}))
    assert cfg.timeout_seconds == 5


def test_invalid_json_string():
    with pytest.raises(ConfigError):
        load_config("{not json")


def test_yaml_file(tmp_path: Path):
    p = tmp_path / "pricetools.yaml"
    p.write_text(f"database_url: {URL}\nmax_connections: 9\n")
    cfg = load_config(p)
    assert cfg.max_connections == 9


def test_example_file_with_nested_key():
    p = Path(__file__).resolve().parent.parent / "examples" / "pricetools.yaml"
    cfg = load_config(p)
    assert cfg.database_url == EXAMPLE_DATABASE_URL


def test_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.yaml")


def test_environment_variables():
    env = {
        "PRICETOOLS_DATABASE_URL": URL,
        "PRICETOOLS_MAX_CONNECTIONS": "12",
        "PRICETOOLS_TIMEOUT_SECONDS": "3",
    }
    cfg = load_config(environ=env)
    assert (cfg.max_connections, cfg.timeout_seconds) == (12, 3)


def test_environment_config_path(tmp_path: Path):
    p = tmp_path / "c.json"
    p.write_text(json.dumps({"database_url": URL}))
    cfg = load_config(environ={"PRICETOOLS_CONFIG": str(p)})
    assert cfg.database_url == URL


def test_config_schema():
    schema = config_schema()
    props = schema["properties"]
    assert set(props) == {"database_url", "max_connections", "timeout_seconds"}
    assert props["max_connections"]["minimum"] == 1
    assert props["max_connections"]["maximum"] == 100
    assert schema["required"] == ["database_url"]
    assert EXAMPLE_DATABASE_URL in props["database_url"]["examples"]
