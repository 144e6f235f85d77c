"""CLI tests for the kage entry point."""

import pytest

from kage.driver_vm import EXIT_ERROR, EXIT_NO_KEY, main
from kage_runtime import base64codec, crypto


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("KAGE_KEY", "KAGE_MAX_DEPTH", "KAGE_STACK_LIMIT", "KAGE_DEBUG"):
        monkeypatch.delenv(name, raising=False)


def test_run_expr(capsys, key):
    assert main(["run", "-e", '"hello"', "--key", key.hex()]) == 0
    assert capsys.readouterr().out == "hello\n"


def test_run_file_full_decrypt(tmp_path, capsys, key):
    src = tmp_path / "prog.kg"
    src.write_text('encrypt encrypt "layered"\n', encoding="utf-8")
    assert main(["run", str(src), "--full-decrypt", "--key", base64codec.encode(key)]) == 0
    assert capsys.readouterr().out == "layered\n"


def test_run_prints_envelope(capsys, key):
    assert main(["run", "-e", 'encrypt "s"', "--key", key.hex()]) == 0
    envelope = capsys.readouterr().out.strip()
    assert crypto.decrypt(envelope, key) == b"s"


def test_run_all(capsys, key):
    assert main(["run", "-e", '"a" "b"', "--all", "--key", key.hex()]) == 0
    assert capsys.readouterr().out == "a\nb\n"


def test_key_from_environment(capsys, monkeypatch, key):
    monkeypatch.setenv("KAGE_KEY", key.hex())
    assert main(["run", "-e", '"env"']) == 0
    assert capsys.readouterr().out == "env\n"


def test_key_file(tmp_path, capsys, key):
    key_file = tmp_path / "k.bin"
    key_file.write_bytes(key)
    assert main(["run", "-e", '"file"', "--key-file", str(key_file)]) == 0
    assert capsys.readouterr().out == "file\n"


def test_missing_key(capsys):
    assert main(["run", "-e", '"x"']) == EXIT_NO_KEY
    assert "MISSING_KEY" in capsys.readouterr().err


def test_parse_error_reports_kind_and_offset(capsys, key):
    assert main(["run", "-e", "encrypt", "--key", key.hex()]) == EXIT_ERROR
    assert "parse error: MISSING_OPERAND at offset 7" in capsys.readouterr().err


def test_crypto_error(capsys, key):
    assert main(["run", "-e", 'decrypt "x"', "--key", key.hex()]) == EXIT_ERROR
    assert "crypto error: MALFORMED_ENVELOPE" in capsys.readouterr().err


def test_dump_needs_no_key(capsys):
    assert main(["run", "-e", 'encrypt "x"', "--dump"]) == 0
    assert capsys.readouterr().out == "0000  PUSH     'x'\n0001  ENCRYPT\n"


def test_encrypt_and_decrypt_commands(capsys, key):
    assert main(["encrypt", "round trip", "--key", key.hex()]) == 0
    envelope = capsys.readouterr().out.strip()
    assert main(["decrypt", envelope, "--key", key.hex()]) == 0
    assert capsys.readouterr().out == "round trip\n"


def test_decrypt_wrong_key(capsys, key, other_key):
    envelope = crypto.encrypt("x", key)
    assert main(["decrypt", envelope, "--key", other_key.hex()]) == EXIT_ERROR
    assert "AUTHENTICATION_FAILURE" in capsys.readouterr().err


@pytest.mark.parametrize("flag", [[], ["--base64"], ["--hex"]])
def test_keygen(capsys, flag):
    assert main(["keygen", *flag]) == 0
    out = capsys.readouterr().out.strip()
    raw = bytes.fromhex(out) if flag == ["--hex"] else base64codec.decode(out)
    assert len(raw) == crypto.KEY_SIZE


def test_missing_source_file(capsys, key):
    assert main(["run", "nope.kg", "--key", key.hex()]) == EXIT_ERROR
    assert "nope.kg" in capsys.readouterr().err


def test_non_utf8_source_file(tmp_path, capsys, key):
    src = tmp_path / "bad.kg"
    src.write_bytes(b"\xff\xfe\"x\"")
    assert main(["run", str(src), "--key", key.hex()]) == EXIT_ERROR
    assert "not UTF-8" in capsys.readouterr().err


def test_bad_env_setting(capsys, monkeypatch):
    monkeypatch.setenv("KAGE_STACK_LIMIT", "many")
    assert main(["keygen"]) == EXIT_ERROR
    assert "INVALID_SETTING" in capsys.readouterr().err
