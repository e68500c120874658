import json
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from ghost_endnote.config import RunConfig, load_options, normalize_endpoint
from ghost_endnote.utils.errors import ConfigurationError


BASE = {"api_url": "https://blog.example.com", "admin_api_key": "id:abcd", "post_ids": ["a"]}


def test_defaults():
    config = RunConfig.from_options(BASE)
    assert config.content == "Test endnote content"
    assert config.delay_between_calls == 50
    assert config.concurrency == 1


def test_post_ids_from_comma_string():
    config = RunConfig.from_options({**BASE, "post_ids": " a, b ,,c "})
    assert config.post_ids == ["a", "b", "c"]


@pytest.mark.parametrize(
    "change",
    [
        {"api_url": ""},
        {"admin_api_key": "  "},
        {"post_ids": []},
        {"post_ids": " , "},
        {"delay_between_calls": -1},
        {"concurrency": 4},
    ],
)
def test_invalid_options_raise_configuration_error(change):
    with pytest.raises(ConfigurationError):
        RunConfig.from_options({**BASE, **change})


def test_missing_option_raises_configuration_error():
    with pytest.raises(ConfigurationError) as exc:
        RunConfig.from_options({"api_url": "https://x"})
    assert "admin_api_key" in str(exc.value)


def test_config_is_frozen():
    config = RunConfig.from_options(BASE)
    with pytest.raises(Exception):
        config.content = "changed"


def test_normalize_endpoint_strips_trailing_slash():
    assert normalize_endpoint("https://blog.example.com/") == "https://blog.example.com"


def test_normalize_endpoint_rewrites_exact_alias_only():
    aliases = {"localhost": "127.0.0.1"}
    assert normalize_endpoint("http://localhost:2368/", aliases) == "http://127.0.0.1:2368"
    assert normalize_endpoint("http://localhost.example.com", aliases) == "http://localhost.example.com"
    assert normalize_endpoint("http://localhost:2368", {}) == "http://localhost:2368"


def test_endpoint_property_uses_configured_aliases():
    config = RunConfig.from_options({**BASE, "api_url": "http://ghost.local/", "loopback_aliases": {"ghost.local": "10.0.0.5"}})
    assert config.endpoint == "http://10.0.0.5"


def test_load_options_layers(tmp_path):
    path = tmp_path / "endnote_config.json"
    path.write_text(json.dumps({"ghost": {"api_url": "https://file.example.com"}, "migration": {"content": "From file"}}))
    options = load_options(
        str(path),
        {"post_ids": ["x"], "content": None, "delay_between_calls": 10},
        environ={"GHOST_ADMIN_API_KEY": "id:beef", "GHOST_API_URL": "https://env.example.com"},
    )
    assert options["api_url"] == "https://file.example.com"
    assert options["admin_api_key"] == "id:beef"
    assert options["content"] == "From file"
    assert options["delay_between_calls"] == 10
    assert options["post_ids"] == ["x"]


def test_load_options_missing_file_uses_environment(tmp_path):
    options = load_options(str(tmp_path / "absent.json"), environ={"GHOST_API_URL": "https://env.example.com"})
    assert options["api_url"] == "https://env.example.com"
    assert options["post_ids"] == []


@pytest.mark.parametrize("document", [{"ghost": None}, {"migration": None}, {"ghost": ["x"]}, {"migration": "fast"}])
def test_load_options_rejects_non_object_sections(tmp_path, document):
    path = tmp_path / "endnote_config.json"
    path.write_text(json.dumps(document))
    with pytest.raises(ConfigurationError):
        load_options(str(path), environ={})


def test_load_options_bad_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    with pytest.raises(ConfigurationError):
        load_options(str(path), environ={})
