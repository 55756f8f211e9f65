# tests/cli/test_cli.py
"""Tests for the proofmark CLI."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from proofmark.cli import (
    EXIT_CONFIG,
    EXIT_FAILURE,
    EXIT_INVALID_STATE,
    EXIT_NOT_FOUND,
    EXIT_RATE_LIMITED,
    EXIT_SIGNING_DISABLED,
    EXIT_VALIDATION,
    app,
)
from proofmark.core.canonical import fingerprint_content
from tests.helpers.records import WALLET

runner = CliRunner()

SIGNER_KEY = "0x" + "07" * 32


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    """Settings pointing the JSON store into tmp_path; signing enabled, 2 per minute."""
    path = tmp_path / "settings.yaml"
    path.write_text(
        f"""
store:
  backend: json
  path: {tmp_path / "publications.json"}
signer:
  enabled: true
  private_key_env: TEST_CLI_SIGNER_KEY
  rate_limit:
    max_requests: 2
    window_seconds: 60
logging:
  level: WARNING
"""
    )
    return path


@pytest.fixture
def sqlite_settings_file(tmp_path: Path) -> Path:
    path = tmp_path / "sqlite.yaml"
    path.write_text(f"store:\n  backend: sqlite\n  url: sqlite:///{tmp_path / 'publications.db'}\nlogging:\n  level: WARNING\n")
    return path


def invoke(settings: Path, *args: str, input: str | None = None):
    return runner.invoke(
        app,
        ["--no-dotenv", "--settings", str(settings), *args],
        input=input,
        env={"TEST_CLI_SIGNER_KEY": SIGNER_KEY},
    )


def publish(settings: Path, content: str, *extra: str) -> dict:
    result = invoke(settings, "publish", "--title", "T", "--wallet", WALLET, "--json", *extra, input=content)
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestCLIBasics:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "proofmark version" in result.stdout

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("canonicalize", "fingerprint", "publish", "confirm", "fail", "verify", "list", "show", "chain", "seed", "signer"):
            assert command in result.stdout

    def test_missing_settings_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["--no-dotenv", "--settings", str(tmp_path / "nope.yaml"), "list"])
        assert result.exit_code == EXIT_CONFIG
        assert "Settings file not found" in result.output

    def test_environment_configures_without_settings_file(self, tmp_path: Path) -> None:
        env = {
            "PROOFMARK_SIGNER__ENABLED": "true",
            "PROOFMARK_SIGNER_PRIVATE_KEY": SIGNER_KEY,
            "PROOFMARK_STORE__PATH": str(tmp_path / "env-store.json"),
        }

        status = runner.invoke(app, ["--no-dotenv", "signer", "status"], env=env)
        published = runner.invoke(app, ["--no-dotenv", "publish", "--title", "T", "--sign"], input="content", env=env)

        assert status.exit_code == 0
        assert "Backend signing enabled" in status.stdout
        assert published.exit_code == 0, published.output
        assert (tmp_path / "env-store.json").exists()

    def test_invalid_environment_value(self) -> None:
        result = runner.invoke(app, ["--no-dotenv", "list"], env={"PROOFMARK_STORE__BACKEND": "tape"})

        assert result.exit_code == EXIT_CONFIG
        assert "store.backend" in result.output

    def test_invalid_settings(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yaml"
        bad.write_text("store:\n  backend: tape\n")

        result = runner.invoke(app, ["--no-dotenv", "--settings", str(bad), "list"])

        assert result.exit_code == EXIT_CONFIG
        assert "store.backend" in result.output


class TestContentCommands:
    def test_canonicalize_stdin(self, settings_file: Path) -> None:
        result = invoke(settings_file, "canonicalize", input="\n\nHello   \r\nWorld  \n\n")

        assert result.exit_code == 0
        assert result.stdout == "Hello\nWorld\n"

    def test_canonicalize_json(self, settings_file: Path) -> None:
        result = invoke(settings_file, "canonicalize", "--json", input="Hello\r\nWorld")

        payload = json.loads(result.stdout)
        assert payload["canonical"] == "Hello\nWorld"
        assert payload["fingerprint"] == fingerprint_content("Hello\nWorld")

    def test_fingerprint_file_keeps_crlf_semantics(self, settings_file: Path, tmp_path: Path) -> None:
        content_file = tmp_path / "note.txt"
        content_file.write_bytes(b"Hello\r\nWorld\r\n")

        result = invoke(settings_file, "fingerprint", "--file", str(content_file))

        assert result.exit_code == 0
        assert result.stdout.strip() == fingerprint_content("Hello\nWorld")

    def test_missing_content_file(self, settings_file: Path, tmp_path: Path) -> None:
        result = invoke(settings_file, "fingerprint", "--file", str(tmp_path / "missing.txt"))

        assert result.exit_code == EXIT_VALIDATION
        assert "File not found" in result.output

    def test_non_utf8_file_is_a_validation_error(self, settings_file: Path, tmp_path: Path) -> None:
        content_file = tmp_path / "latin1.txt"
        content_file.write_bytes(b"\xff\xfe bad")

        for command in ("canonicalize", "fingerprint"):
            result = invoke(settings_file, command, "--file", str(content_file))

            assert result.exit_code == EXIT_VALIDATION
            assert "not valid UTF-8" in result.output

    def test_non_utf8_stdin_is_a_validation_error(self, settings_file: Path) -> None:
        result = runner.invoke(
            app,
            ["--no-dotenv", "--settings", str(settings_file), "publish", "--title", "T", "--wallet", WALLET, "--json"],
            input=b"caf\xe9",
        )

        assert result.exit_code == EXIT_VALIDATION
        assert "not valid UTF-8" in json.loads(result.stdout)["error"]

    def test_stdin_decoded_as_utf8(self, settings_file: Path) -> None:
        result = runner.invoke(
            app,
            ["--no-dotenv", "--settings", str(settings_file), "fingerprint"],
            input="caf\u00e9".encode(),
        )

        assert result.exit_code == 0
        assert result.stdout.strip() == fingerprint_content("caf\u00e9")


class TestRegistryCommands:
    def test_publish_then_verify(self, settings_file: Path) -> None:
        created = publish(settings_file, "Hello   \nWorld  ")

        result = invoke(settings_file, "verify", "--json", input="Hello\nWorld")

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["matched"] is True
        assert [m["id"] for m in payload["matches"]] == [created["id"]]

    def test_verify_no_match_exits_nonzero(self, settings_file: Path) -> None:
        result = invoke(settings_file, "verify", input="never published")

        assert result.exit_code == EXIT_FAILURE
        assert "NO MATCH" in result.stdout

    def test_verify_by_hash(self, settings_file: Path) -> None:
        created = publish(settings_file, "content")

        result = invoke(settings_file, "verify", "--hash", created["contentHash"])

        assert result.exit_code == 0
        assert created["id"] in result.stdout

    def test_verify_malformed_hash(self, settings_file: Path) -> None:
        result = invoke(settings_file, "verify", "--hash", "0x123")

        assert result.exit_code == EXIT_VALIDATION

    def test_publish_requires_wallet_or_sign(self, settings_file: Path) -> None:
        result = invoke(settings_file, "publish", "--title", "T", input="content")

        assert result.exit_code == EXIT_VALIDATION
        assert "--wallet" in result.output

    def test_publish_empty_title(self, settings_file: Path) -> None:
        result = invoke(settings_file, "publish", "--title", " ", "--wallet", WALLET, "--json", input="content")

        assert result.exit_code == EXIT_VALIDATION
        assert json.loads(result.stdout)["exitCode"] == EXIT_VALIDATION

    def test_confirm_and_double_confirm(self, settings_file: Path) -> None:
        created = publish(settings_file, "content")

        first = invoke(settings_file, "confirm", created["id"], "--tx-hash", "0xtx", "--json")
        second = invoke(settings_file, "confirm", created["id"], "--tx-hash", "0xtx2")

        assert first.exit_code == 0
        assert json.loads(first.stdout)["status"] == "CONFIRMED"
        assert second.exit_code == EXIT_INVALID_STATE
        assert "Error:" in second.output

    def test_fail(self, settings_file: Path) -> None:
        created = publish(settings_file, "content")

        result = invoke(settings_file, "fail", created["id"])

        assert result.exit_code == 0
        assert "FAILED" in result.stdout

    def test_confirm_unknown(self, settings_file: Path) -> None:
        result = invoke(settings_file, "confirm", "missing", "--tx-hash", "0xtx")

        assert result.exit_code == EXIT_NOT_FOUND

    def test_list_filters(self, settings_file: Path) -> None:
        first = publish(settings_file, "one")
        second = publish(settings_file, "two", "--wallet", "0xsomeoneelse")

        everything = json.loads(invoke(settings_file, "list", "--json").stdout)["publications"]
        mine = json.loads(invoke(settings_file, "list", "--wallet", WALLET, "--json").stdout)["publications"]

        assert [p["id"] for p in everything] == [second["id"], first["id"]]
        assert [p["id"] for p in mine] == [first["id"]]

    def test_list_by_status(self, settings_file: Path) -> None:
        created = publish(settings_file, "one")
        publish(settings_file, "two")
        invoke(settings_file, "confirm", created["id"], "--tx-hash", "0xtx")

        result = invoke(settings_file, "list", "--status", "CONFIRMED")

        assert result.exit_code == 0
        assert result.stdout.count("\n") == 1
        assert created["id"] in result.stdout

    def test_list_empty(self, settings_file: Path) -> None:
        result = invoke(settings_file, "list")

        assert result.exit_code == 0
        assert "No publications found" in result.stdout

    def test_show_and_chain(self, settings_file: Path) -> None:
        a = publish(settings_file, "A")
        b = publish(settings_file, "B", "--parent", a["contentHash"])
        c = publish(settings_file, "C", "--parent", b["contentHash"])

        shown = json.loads(invoke(settings_file, "show", b["id"], "--json").stdout)
        chain = json.loads(invoke(settings_file, "chain", c["contentHash"], "--json").stdout)

        assert shown["prevVersion"] == a["id"]
        assert shown["nextVersion"] == c["id"]
        assert [v["id"] for v in chain["versions"]] == [a["id"], b["id"], c["id"]]
        assert chain["cycleDetected"] is False

    def test_show_unknown(self, settings_file: Path) -> None:
        result = invoke(settings_file, "show", "missing", "--json")

        assert result.exit_code == EXIT_NOT_FOUND
        assert "Publication not found" in json.loads(result.stdout)["error"]

    def test_sqlite_backend(self, sqlite_settings_file: Path) -> None:
        created = publish(sqlite_settings_file, "stored in sqlite")

        result = invoke(sqlite_settings_file, "show", created["id"])

        assert result.exit_code == 0
        assert created["contentHash"] in result.stdout


class TestSeedCommand:
    def test_seed_empty_store(self, settings_file: Path) -> None:
        result = invoke(settings_file, "seed", "--json")

        assert result.exit_code == 0, result.output
        seeded = json.loads(result.stdout)["publications"]
        listed = json.loads(invoke(settings_file, "list", "--json").stdout)["publications"]
        assert {p["id"] for p in listed} == {p["id"] for p in seeded}
        assert seeded[1]["parentHash"] == seeded[0]["contentHash"]

    def test_seed_refuses_non_empty_store(self, settings_file: Path) -> None:
        publish(settings_file, "already here")

        refused = invoke(settings_file, "seed")
        forced = invoke(settings_file, "seed", "--force")

        assert refused.exit_code == EXIT_FAILURE
        assert "--force" in refused.output
        assert forced.exit_code == 0
        assert "Seeded" in forced.stdout


class TestSignerCommands:
    def test_publish_signed(self, settings_file: Path) -> None:
        status = json.loads(invoke(settings_file, "signer", "status", "--json").stdout)

        result = invoke(settings_file, "publish", "--title", "T", "--sign", "--json", input="signed content")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["publisherWallet"] == status["address"]
        assert payload["signature"]["contentHash"] == payload["contentHash"]

    def test_signing_disabled(self, tmp_path: Path) -> None:
        settings = tmp_path / "disabled.yaml"
        settings.write_text(f"store:\n  path: {tmp_path / 'p.json'}\nsigner:\n  enabled: false\n")

        result = invoke(settings, "publish", "--title", "T", "--sign", input="content")

        assert result.exit_code == EXIT_SIGNING_DISABLED
        assert "disabled" in result.output

    def test_signer_status_disabled(self, tmp_path: Path) -> None:
        settings = tmp_path / "disabled.yaml"
        settings.write_text("signer:\n  enabled: false\n")

        result = invoke(settings, "signer", "status")

        assert result.exit_code == 0
        assert "disabled" in result.stdout

    def test_keygen(self) -> None:
        result = runner.invoke(app, ["--no-dotenv", "signer", "keygen", "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["address"].startswith("0x")
        assert len(payload["privateKey"]) == 66


def test_exit_codes_are_distinct() -> None:
    from proofmark import cli

    codes = [
        cli.EXIT_FAILURE,
        cli.EXIT_CONFIG,
        cli.EXIT_VALIDATION,
        cli.EXIT_NOT_FOUND,
        cli.EXIT_INVALID_STATE,
        cli.EXIT_DUPLICATE,
        cli.EXIT_SIGNING_DISABLED,
        EXIT_RATE_LIMITED,
    ]
    assert len(set(codes)) == len(codes)
