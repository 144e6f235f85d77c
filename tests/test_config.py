"""Configuration and key-loading tests."""

import os

import pytest

from kage.config import MAX_DEPTH_LIMIT, KageConfig, load_key_file, parse_key
from kage.errors import ConfigError, ConfigErrorKind
from kage.parser import DEFAULT_MAX_DEPTH
from kage.pipeline import compile_source
from kage_runtime import base64codec


def test_parse_hex_key(key):
    assert parse_key(key.hex()) == key
    assert parse_key(key.hex().upper() + "\n") == key


def test_parse_base64_key(key):
    assert parse_key(base64codec.encode(key)) == key


@pytest.mark.parametrize("text", ["", "abcd", "zz" * 32, base64codec.encode(b"k" * 16)])
def test_parse_bad_key(text):
    with pytest.raises(ConfigError) as info:
        parse_key(text)
    assert info.value.kind is ConfigErrorKind.INVALID_KEY


def test_key_file_raw(tmp_path, key):
    path = tmp_path / "raw.key"
    path.write_bytes(key)
    assert load_key_file(path) == key


def test_key_file_text(tmp_path, key):
    path = tmp_path / "text.key"
    path.write_text(key.hex() + "\n")
    assert load_key_file(path) == key


def test_from_env(key):
    cfg = KageConfig.from_env({
        "KAGE_KEY": key.hex(),
        "KAGE_MAX_DEPTH": "32",
        "KAGE_STACK_LIMIT": "64",
        "KAGE_DEBUG": "yes",
    })
    assert cfg == KageConfig(key=key, max_depth=32, stack_limit=64, debug=True)


def test_from_env_defaults():
    cfg = KageConfig.from_env({})
    assert cfg.key is None
    assert cfg.max_depth == DEFAULT_MAX_DEPTH
    assert cfg.stack_limit is None
    assert cfg.debug is False


@pytest.mark.parametrize("value", ["lots", "0", "-3"])
def test_from_env_bad_int(value):
    with pytest.raises(ConfigError) as info:
        KageConfig.from_env({"KAGE_MAX_DEPTH": value})
    assert info.value.kind is ConfigErrorKind.INVALID_SETTING


def test_from_env_caps_max_depth():
    with pytest.raises(ConfigError) as info:
        KageConfig.from_env({"KAGE_MAX_DEPTH": str(MAX_DEPTH_LIMIT + 1)})
    assert info.value.kind is ConfigErrorKind.INVALID_SETTING
    assert KageConfig.from_env({"KAGE_MAX_DEPTH": str(MAX_DEPTH_LIMIT)}).max_depth == MAX_DEPTH_LIMIT


def test_max_depth_limit_compiles():
    source = "encrypt " * (MAX_DEPTH_LIMIT - 1) + '"x"'
    _, code = compile_source(source, MAX_DEPTH_LIMIT)
    assert len(code) == MAX_DEPTH_LIMIT
    assert DEFAULT_MAX_DEPTH <= MAX_DEPTH_LIMIT


def test_require_key():
    with pytest.raises(ConfigError) as info:
        KageConfig().require_key()
    assert info.value.kind is ConfigErrorKind.MISSING_KEY


def test_from_env_reads_dotenv(tmp_path, monkeypatch, key):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("KAGE_KEY", raising=False)
    (tmp_path / ".env").write_text(f"KAGE_KEY={key.hex()}\n")
    cfg = KageConfig.from_env()
    os.environ.pop("KAGE_KEY", None)
    assert cfg.key == key
