# src/proofmark/cli.py
"""proofmark Command Line Interface.

Entry point for the proofmark CLI tool.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, NoReturn

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError as SettingsValidationError

from proofmark import __version__
from proofmark.contracts import (
    ContentType,
    DuplicateRecordError,
    InvalidStateError,
    NotFoundError,
    ProofmarkError,
    PublicationDraft,
    PublicationFilter,
    PublicationRecord,
    PublicationStatus,
    RateLimitedError,
    SigningDisabledError,
    ValidationError,
)
from proofmark.core.canonical import CANONICAL_VERSION, canonicalize, fingerprint
from proofmark.core.config import ProofmarkSettings, default_settings, load_settings
from proofmark.core.registry import PublicationRegistry
from proofmark.core.store import SchemaCompatibilityError, open_store

__all__ = ["app"]

# Exit codes, one per error kind
EXIT_FAILURE = 1  # Also: verify found no match
EXIT_CONFIG = 2
EXIT_VALIDATION = 3
EXIT_NOT_FOUND = 4
EXIT_INVALID_STATE = 5
EXIT_DUPLICATE = 6
EXIT_SIGNING_DISABLED = 7
EXIT_RATE_LIMITED = 8

_EXIT_CODES: tuple[tuple[type[ProofmarkError], int], ...] = (
    (ValidationError, EXIT_VALIDATION),
    (NotFoundError, EXIT_NOT_FOUND),
    (InvalidStateError, EXIT_INVALID_STATE),
    (DuplicateRecordError, EXIT_DUPLICATE),
    (SigningDisabledError, EXIT_SIGNING_DISABLED),
    (RateLimitedError, EXIT_RATE_LIMITED),
)

app = typer.Typer(
    name="proofmark",
    help="proofmark: content fingerprint registry.",
    no_args_is_help=True,
)

signer_app = typer.Typer(help="Backend signer commands.")
app.add_typer(signer_app, name="signer")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"proofmark version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(EXIT_CONFIG)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


def _load_settings_or_exit(settings_path: Path | None) -> ProofmarkSettings:
    source = settings_path or "environment"
    try:
        return load_settings(settings_path)
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {source}: {e.problem}", err=True)
        raise typer.Exit(EXIT_CONFIG) from None
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings_path}", err=True)
        raise typer.Exit(EXIT_CONFIG) from None
    except SettingsValidationError as e:
        typer.echo(f"Configuration errors ({source}):", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(EXIT_CONFIG) from None


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file (defaults plus PROOFMARK_* environment when omitted).",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """proofmark: content fingerprint registry."""
    from proofmark.core.logging import configure_logging

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )

    # Settings may come from the .env just loaded, so load them second
    config = _load_settings_or_exit(settings)
    log_level = "DEBUG" if verbose else config.logging.level
    configure_logging(json_output=json_logs or config.logging.json_output, level=log_level)

    ctx.obj = config


# ── Helpers ──────────────────────────────────────────────────────────────


def _settings(ctx: typer.Context) -> ProofmarkSettings:
    config = ctx.find_root().obj
    if isinstance(config, ProofmarkSettings):
        return config
    return default_settings()


def _fail(message: str, code: int, *, json_output: bool) -> NoReturn:
    if json_output:
        typer.echo(json_module.dumps({"error": message, "exitCode": code}))
    else:
        typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code)


@contextmanager
def _error_boundary(*, json_output: bool) -> Iterator[None]:
    """Map proofmark errors onto exit codes and an error line."""
    try:
        yield
    except ProofmarkError as e:
        for error_type, code in _EXIT_CODES:
            if isinstance(e, error_type):
                _fail(str(e), code, json_output=json_output)
        _fail(str(e), EXIT_FAILURE, json_output=json_output)
    except SchemaCompatibilityError as e:
        _fail(str(e), EXIT_CONFIG, json_output=json_output)
    except ValueError as e:
        # Unreadable store document
        _fail(str(e), EXIT_FAILURE, json_output=json_output)


def _open_registry(ctx: typer.Context) -> PublicationRegistry:
    return PublicationRegistry(open_store(_settings(ctx).store))


def _read_content(file: Path | None) -> str:
    """Read content from --file, or stdin when no file is given.

    Bytes are decoded as UTF-8 without newline translation.

    Raises:
        ValidationError: If the file is missing or not valid UTF-8
    """
    if file is not None:
        if not file.exists():
            raise ValidationError(f"File not found: {file}", field="file")
        data = file.read_bytes()
        source = str(file)
    else:
        data = typer.get_binary_stream("stdin").read()
        source = "stdin"
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError(f"Content from {source} is not valid UTF-8: {e.reason} at byte {e.start}", field="content") from None


def _echo_json(payload: Any) -> None:
    typer.echo(json_module.dumps(payload, indent=2))


def _record_line(record: PublicationRecord) -> str:
    return f"{record.id}  {record.status.value:<9}  {record.content_hash}  {record.title}"


def _echo_record(record: PublicationRecord) -> None:
    typer.echo(f"id:          {record.id}")
    typer.echo(f"title:       {record.title}")
    typer.echo(f"type:        {record.content_type.value}")
    typer.echo(f"status:      {record.status.value}")
    typer.echo(f"fingerprint: {record.content_hash}")
    typer.echo(f"publisher:   {record.publisher_wallet}")
    typer.echo(f"created:     {record.created_at.isoformat()}")
    if record.parent_hash:
        typer.echo(f"parent:      {record.parent_hash}")
    if record.source_url:
        typer.echo(f"source:      {record.source_url}")
    if record.tx_hash:
        typer.echo(f"tx:          {record.tx_hash}")
    if record.block_timestamp is not None:
        typer.echo(f"confirmed:   {record.block_timestamp.isoformat()}")


_FILE_OPTION_HELP = "Read content from this file instead of stdin."


# ── Content commands ─────────────────────────────────────────────────────


@app.command("canonicalize")
def canonicalize_command(
    file: Path | None = typer.Option(None, "--file", "-f", help=_FILE_OPTION_HELP),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Print the canonical form of content."""
    with _error_boundary(json_output=json_output):
        canonical = canonicalize(_read_content(file))

    if json_output:
        _echo_json({"canonical": canonical, "fingerprint": fingerprint(canonical), "version": CANONICAL_VERSION})
    else:
        typer.echo(canonical)


@app.command("fingerprint")
def fingerprint_command(
    file: Path | None = typer.Option(None, "--file", "-f", help=_FILE_OPTION_HELP),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Print the fingerprint of content (after canonicalization)."""
    with _error_boundary(json_output=json_output):
        content_hash = fingerprint(canonicalize(_read_content(file)))

    if json_output:
        _echo_json({"fingerprint": content_hash, "version": CANONICAL_VERSION})
    else:
        typer.echo(content_hash)


# ── Registry commands ────────────────────────────────────────────────────


@app.command()
def publish(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", "-t", help="Publication title."),
    file: Path | None = typer.Option(None, "--file", "-f", help=_FILE_OPTION_HELP),
    content_type: ContentType = typer.Option(ContentType.TEXT, "--type", help="Content type (metadata only)."),
    source_url: str | None = typer.Option(None, "--source-url", help="Where the content was published."),
    parent: str | None = typer.Option(None, "--parent", "-p", help="Fingerprint of the previous version."),
    wallet: str | None = typer.Option(None, "--wallet", "-w", help="Publisher identity."),
    sign: bool = typer.Option(False, "--sign", help="Sign with the backend signer; its address becomes the publisher."),
    client_id: str = typer.Option("local", "--client-id", help="Identity the signing rate limit applies to."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Register content as a new PENDING publication.

    Examples:

        proofmark publish --title "Notes" --wallet 0xabc --file notes.md

        cat notes.md | proofmark publish --title "Notes" --sign
    """
    with _error_boundary(json_output=json_output):
        content = _read_content(file)
        if not sign and not wallet:
            raise ValidationError("--wallet is required unless --sign is given", field="publisher_wallet")

        draft = PublicationDraft(
            title=title,
            content=content,
            content_type=content_type,
            source_url=source_url,
            parent_hash=parent,
            publisher_wallet=wallet or "",
        )
        registry = _open_registry(ctx)

        if sign:
            from proofmark.core.signing import BackendSigner

            with BackendSigner.from_settings(_settings(ctx).signer) as signer:
                record, signature = registry.publish(draft, signer, client_id=client_id)
            if json_output:
                _echo_json({**record.to_wire(), "signature": signature.to_wire()})
                return
            _echo_record(record)
            typer.echo(f"signature:   {signature.signature}")
            return

        record = registry.create(draft)

    if json_output:
        _echo_json(record.to_wire())
    else:
        _echo_record(record)


@app.command()
def confirm(
    ctx: typer.Context,
    publication_id: str = typer.Argument(..., help="Publication id."),
    tx_hash: str = typer.Option(..., "--tx-hash", help="Transaction hash of the on-chain registration."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Mark a PENDING publication CONFIRMED."""
    with _error_boundary(json_output=json_output):
        record = _open_registry(ctx).confirm(publication_id, tx_hash)

    if json_output:
        _echo_json(record.to_wire())
    else:
        typer.echo(_record_line(record))


@app.command()
def fail(
    ctx: typer.Context,
    publication_id: str = typer.Argument(..., help="Publication id."),
    tx_hash: str | None = typer.Option(None, "--tx-hash", help="Transaction hash of the failed attempt."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Mark a PENDING publication FAILED."""
    with _error_boundary(json_output=json_output):
        record = _open_registry(ctx).fail(publication_id, tx_hash=tx_hash)

    if json_output:
        _echo_json(record.to_wire())
    else:
        typer.echo(_record_line(record))


@app.command()
def verify(
    ctx: typer.Context,
    file: Path | None = typer.Option(None, "--file", "-f", help=_FILE_OPTION_HELP),
    content_hash: str | None = typer.Option(None, "--hash", help="Verify a fingerprint instead of content."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Check content (or a fingerprint) against the registry.

    Exits 0 when at least one publication matches, 1 when none does.
    """
    with _error_boundary(json_output=json_output):
        registry = _open_registry(ctx)
        if content_hash is not None:
            result = registry.verify_fingerprint(content_hash)
        else:
            result = registry.verify(_read_content(file))

    if json_output:
        _echo_json(result.to_wire())
    elif result.matched:
        typer.echo(f"MATCH {result.fingerprint}")
        for record in result.matches:
            typer.echo(f"  {_record_line(record)}")
    else:
        typer.echo(f"NO MATCH {result.fingerprint}")

    if not result.matched:
        raise typer.Exit(EXIT_FAILURE)


@app.command("list")
def list_command(
    ctx: typer.Context,
    wallet: str | None = typer.Option(None, "--wallet", "-w", help="Only this publisher (case-insensitive)."),
    status: PublicationStatus | None = typer.Option(None, "--status", help="Only this status."),
    search: str | None = typer.Option(None, "--search", "-q", help="Substring of title, id or fingerprint."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """List publications, newest first."""
    with _error_boundary(json_output=json_output):
        records = _open_registry(ctx).list(PublicationFilter(wallet=wallet, status=status, search_term=search))

    if json_output:
        _echo_json({"publications": [r.to_wire() for r in records]})
        return

    if not records:
        typer.echo("No publications found.")
        return
    for record in records:
        typer.echo(_record_line(record))


@app.command()
def show(
    ctx: typer.Context,
    publication_id: str = typer.Argument(..., help="Publication id."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Show one publication with its previous and next versions."""
    with _error_boundary(json_output=json_output):
        info = _open_registry(ctx).version_info(publication_id)

    if json_output:
        _echo_json(info.to_wire())
        return

    _echo_record(info.record)
    typer.echo(f"previous:    {info.previous.id if info.previous is not None else '-'}")
    typer.echo(f"next:        {info.next.id if info.next is not None else '-'}")


@app.command()
def chain(
    ctx: typer.Context,
    content_hash: str = typer.Argument(..., help="Fingerprint of any version in the chain."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Show the version chain through a fingerprint, oldest first."""
    with _error_boundary(json_output=json_output):
        traversal = _open_registry(ctx).chain(content_hash)

    if json_output:
        _echo_json(
            {
                "start": traversal.start,
                "versions": [r.to_wire() for r in traversal],
                "cycleDetected": traversal.cycle_detected,
                "cycleAt": traversal.cycle_at,
                "danglingParent": traversal.dangling_parent,
            }
        )
        return

    if not traversal:
        typer.echo(f"No publication with fingerprint {content_hash}")
        return
    if traversal.dangling_parent is not None:
        typer.echo(f"(parent {traversal.dangling_parent} not registered)")
    for index, record in enumerate(traversal, start=1):
        typer.echo(f"{index:>3}. {_record_line(record)}")
    if traversal.cycle_detected:
        typer.secho(f"Warning: version cycle at {traversal.cycle_at}", fg=typer.colors.YELLOW, err=True)


@app.command()
def seed(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Add the samples even if the store already has publications."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Populate the store with sample publications for development."""
    from proofmark.core.samples import seed_registry

    with _error_boundary(json_output=json_output):
        registry = _open_registry(ctx)
        existing = len(registry.list())
        if existing and not force:
            _fail(
                f"Store already holds {existing} publications; use --force to add the samples anyway",
                EXIT_FAILURE,
                json_output=json_output,
            )
        records = seed_registry(registry)

    if json_output:
        _echo_json({"publications": [r.to_wire() for r in records]})
        return

    typer.echo(f"Seeded {len(records)} sample publications:")
    for record in records:
        typer.echo(f"  {_record_line(record)}")


# ── Signer commands ──────────────────────────────────────────────────────


@signer_app.command("status")
def signer_status(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Report whether backend signing is available."""
    from proofmark.core.signing import BackendSigner

    with BackendSigner.from_settings(_settings(ctx).signer) as signer:
        status = signer.status()

    if json_output:
        _echo_json(status)
    elif status["enabled"]:
        typer.echo(f"Backend signing enabled. Address: {status['address']}")
    else:
        typer.echo("Backend signing disabled.")


@signer_app.command("keygen")
def signer_keygen(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Generate a new backend signing key (development only)."""
    from proofmark.core.signing import generate_keypair

    key = generate_keypair()
    if json_output:
        _echo_json({"privateKey": key.private_key, "publicKey": key.public_key, "address": key.address})
        return

    typer.echo(f"Address:     {key.address}")
    typer.echo(f"Public key:  {key.public_key}")
    typer.echo(f"Private key: {key.private_key}")
    typer.secho("Store the private key in PROOFMARK_SIGNER_PRIVATE_KEY. Never commit it.", fg=typer.colors.YELLOW, err=True)


if __name__ == "__main__":
    app()
