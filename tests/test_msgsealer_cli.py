import json
import subprocess
import sys

from click.testing import CliRunner

from _test_mockups import KNOWN_PRIVATE_KEY_PEM, INVALID_PEM_DATA
from msgsealer.cipher import decrypt_ciphertext
from msgsealer.cli import msgsealer_cli as cli
from msgsealer.keygen import get_public_key_pem, load_keypair_from_file, load_keypair_from_pem
from msgsealer.utilities import unwrap_base64

# For when runner.invoke() is not sufficient
MSGSEALER_CLI_INVOCATION_ARGS = [sys.executable, "-m", "msgsealer"]


def _get_cli_runner():
    return CliRunner()


def test_cli_dash_prefixed_messages_are_encrypted(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "private.pem").write_text(KNOWN_PRIVATE_KEY_PEM)
    keypair = load_keypair_from_pem(KNOWN_PRIVATE_KEY_PEM)
    runner = _get_cli_runner()

    for message in ["-5 degrees", "--help", "-h", "--", "-", "--name=value"]:
        result = runner.invoke(cli, [message], catch_exceptions=False)
        assert result.exit_code == 0, (message, result.stderr)
        record_tree = json.loads(result.stdout)
        assert record_tree["message"] == message
        ciphertext = unwrap_base64(record_tree["signature"])
        assert decrypt_ciphertext(ciphertext, private_key=keypair.private_key) == message

    result = runner.invoke(cli, ["--help", "-h"])
    assert result.exit_code == 2
    assert result.stdout == ""
    assert "unexpected extra argument" in result.stderr


def test_cli_encryption_creates_key_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = _get_cli_runner()

    result = runner.invoke(cli, ["hello world"], catch_exceptions=False)
    assert result.exit_code == 0, result.stderr

    key_file = tmp_path / "private.pem"
    assert key_file.exists()
    keypair = load_keypair_from_file(key_file)

    assert result.stdout.count("\n") == 1  # Exactly one JSON line
    record_tree = json.loads(result.stdout)
    assert list(record_tree.keys()) == ["message", "signature", "pubkey"]
    assert record_tree["message"] == "hello world"
    assert record_tree["pubkey"] == get_public_key_pem(keypair)
    ciphertext = unwrap_base64(record_tree["signature"])
    assert decrypt_ciphertext(ciphertext, private_key=keypair.private_key) == "hello world"

    key_file_content = key_file.read_bytes()
    result = runner.invoke(cli, ["hello again"], catch_exceptions=False)
    assert result.exit_code == 0, result.stderr
    assert json.loads(result.stdout)["pubkey"] == record_tree["pubkey"]
    assert key_file.read_bytes() == key_file_content


def test_cli_encryption_with_existing_key_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "private.pem").write_text(KNOWN_PRIVATE_KEY_PEM)
    keypair = load_keypair_from_pem(KNOWN_PRIVATE_KEY_PEM)
    runner = _get_cli_runner()

    result = runner.invoke(cli, ["パピプペポ"], catch_exceptions=False)
    assert result.exit_code == 0, result.stderr
    record_tree = json.loads(result.stdout)
    assert record_tree["message"] == "パピプペポ"
    assert record_tree["pubkey"] == get_public_key_pem(keypair)
    assert decrypt_ciphertext(unwrap_base64(record_tree["signature"]), private_key=keypair.private_key) == "パピプペポ"


def test_cli_replaces_invalid_key_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    key_file = tmp_path / "private.pem"
    key_file.write_text(INVALID_PEM_DATA)
    runner = _get_cli_runner()

    result = runner.invoke(cli, ["hello world"], catch_exceptions=False)
    assert result.exit_code == 0, result.stderr
    assert "generating a new one" in result.stderr
    assert json.loads(result.stdout)["pubkey"] == get_public_key_pem(load_keypair_from_file(key_file))


def test_cli_errors(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = _get_cli_runner()

    result = runner.invoke(cli, [])
    assert result.exit_code == 2
    assert result.stdout == ""
    assert "Missing argument" in result.stderr

    result = runner.invoke(cli, ["hello", "world"])
    assert result.exit_code == 2
    assert result.stdout == ""
    assert "unexpected extra argument" in result.stderr

    result = runner.invoke(cli, ["x" * 251])
    assert result.exit_code == 5
    assert result.stdout == ""
    assert "under 250 bytes" in result.stderr

    result = runner.invoke(cli, ["x" * 200])  # Too big for a 2056-bit key
    assert result.exit_code == 6
    assert result.stdout == ""
    assert "Failed RSA_OAEP encryption" in result.stderr


def test_cli_as_python_module(tmp_path):
    proc = subprocess.run(
        MSGSEALER_CLI_INVOCATION_ARGS + ["hello world"], cwd=tmp_path, capture_output=True, text=True, encoding="utf8"
    )
    assert proc.returncode == 0, proc.stderr
    assert json.loads(proc.stdout)["message"] == "hello world"
    assert (tmp_path / "private.pem").exists()

    proc = subprocess.run(MSGSEALER_CLI_INVOCATION_ARGS, cwd=tmp_path, capture_output=True, text=True)
    assert proc.returncode == 2
    assert proc.stdout == ""

    if sys.platform != "win32":
        # Undecodable bytes reach python as lone surrogates
        proc = subprocess.run(MSGSEALER_CLI_INVOCATION_ARGS + [b"caf\xe9"], cwd=tmp_path, capture_output=True)
        assert proc.returncode == 8
        assert proc.stdout == b""
        assert b"Error: Message is not valid unicode text" in proc.stderr
        assert b"Traceback" not in proc.stderr


def test_cli_invalid_unicode_message(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = _get_cli_runner()

    result = runner.invoke(cli, ["caf\udce9"])
    assert result.exit_code == 8
    assert result.stdout == ""
    assert "Error: Message is not valid unicode text" in result.stderr


def test_cli_key_file_writing_failure(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "private.pem").mkdir()  # Unwritable as a file, whatever the user privileges
    runner = _get_cli_runner()

    result = runner.invoke(cli, ["hello world"])
    assert result.exit_code == 9
    assert result.stdout == ""
    assert "Error: Couldn't write private key to private.pem" in result.stderr
    assert (tmp_path / "private.pem").is_dir()
