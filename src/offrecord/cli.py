"""Command-line interface for offrecord."""

import json
import sys
import logging
from pathlib import Path
from typing import Optional

import click
import yaml

from offrecord import __version__
from offrecord.engine import SecretRedactor
from offrecord.models import RedactionConfig
from offrecord.registry import PatternRegistry, load_registry


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _load(patterns: tuple[Path, ...], no_defaults: bool) -> PatternRegistry:
    """Build a registry from CLI options, exiting on bad rule files."""
    pattern_paths = [str(p) for p in patterns] if patterns else None
    try:
        return load_registry(paths=pattern_paths, include_defaults=not no_defaults)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)


patterns_option = click.option(
    "--patterns",
    "-p",
    type=click.Path(exists=True, path_type=Path),
    multiple=True,
    help="Rule files to load in addition to the built-in rules",
)
no_defaults_option = click.option(
    "--no-defaults",
    is_flag=True,
    help="Do not load the built-in rules",
)


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """offrecord: Detect and redact secrets in text."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@main.command()
@click.option(
    "--text",
    "-t",
    help="Text to redact (use --in for file input)",
)
@click.option(
    "--in",
    "input_file",
    type=click.Path(exists=True, path_type=Path),
    help="Input file to redact",
)
@click.option(
    "--out",
    "output_file",
    type=click.Path(path_type=Path),
    help="Output file (prints to stdout if not specified)",
)
@patterns_option
@no_defaults_option
@click.option(
    "--replacement",
    default="[REDACTED]",
    show_default=True,
    help="Replacement text for secrets",
)
@click.option(
    "--include-pattern-name",
    is_flag=True,
    help="Replace secrets with [REDACTED:<rule>] instead of the flat replacement",
)
@click.option(
    "--stats",
    is_flag=True,
    help="Print redaction statistics",
)
def redact(
    text: Optional[str],
    input_file: Optional[Path],
    output_file: Optional[Path],
    patterns: tuple[Path, ...],
    no_defaults: bool,
    replacement: str,
    include_pattern_name: bool,
    stats: bool,
) -> None:
    """Redact secrets from text or file."""
    if text is None and input_file is None:
        click.echo("Error: Must provide --text or --in", err=True)
        sys.exit(1)

    if input_file:
        text = input_file.read_text(encoding="utf-8")
    assert text is not None

    registry = _load(patterns, no_defaults)
    config = RedactionConfig(replacement=replacement, include_pattern_name=include_pattern_name)
    result = SecretRedactor(config, registry).redact_detailed(text)

    if output_file:
        output_file.write_text(result.redacted_text, encoding="utf-8")
        if stats:
            click.echo(f"Redacted {result.redaction_count} items to {output_file}")
    else:
        click.echo(result.redacted_text)
        if stats:
            click.echo(f"\n[Redacted {result.redaction_count} items]", err=True)


@main.command()
@click.option(
    "--text",
    "-t",
    help="Text to scan (use --file for file input)",
)
@click.option(
    "--file",
    "-f",
    type=click.Path(exists=True, path_type=Path),
    help="File to scan",
)
@patterns_option
@no_defaults_option
@click.option(
    "--output",
    "-o",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format",
)
def detect(
    text: Optional[str],
    file: Optional[Path],
    patterns: tuple[Path, ...],
    no_defaults: bool,
    output: str,
) -> None:
    """Detect secrets in text or file without modifying it."""
    if text is None and file is None:
        click.echo("Error: Must provide --text or --file", err=True)
        sys.exit(1)

    if file:
        text = file.read_text(encoding="utf-8")
    assert text is not None

    registry = _load(patterns, no_defaults)
    result = SecretRedactor(registry=registry).detect(text)

    if output == "json":
        matches_data = [
            {
                "pattern_name": m.pattern_name,
                "start": m.start_index,
                "end": m.end_index,
                "redacted_value": m.redacted_value,
            }
            for m in result.matches
        ]
        click.echo(
            json.dumps(
                {
                    "found": result.found,
                    "match_count": result.match_count,
                    "matches": matches_data,
                },
                indent=2,
            )
        )
    else:
        click.echo(f"Found {result.match_count} secrets")
        for match in result.matches:
            click.echo(
                f"  {match.pattern_name} at {match.start_index}-{match.end_index}"
                f" [{match.redacted_value}]"
            )


@main.command()
@click.option(
    "--text",
    "-t",
    required=True,
    help="Value to validate",
)
@click.option(
    "--pattern",
    "pattern_name",
    required=True,
    help="Rule name (e.g., github-token)",
)
@patterns_option
def validate(
    text: str,
    pattern_name: str,
    patterns: tuple[Path, ...],
) -> None:
    """Validate a value against a specific rule."""
    registry = _load(patterns, no_defaults=False)
    redactor = SecretRedactor(registry=registry)

    if not registry.has(pattern_name):
        click.echo(f"Error: Pattern '{pattern_name}' not found", err=True)
        sys.exit(2)

    result = redactor.validate_key(text, pattern_name)
    if result.valid:
        click.echo(f"✓ Valid {pattern_name}")
        sys.exit(0)
    else:
        click.echo(f"✗ Invalid {pattern_name}: {result.error}")
        sys.exit(1)


@main.command()
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to listen on [default: config file, else 8080]",
)
@click.option(
    "--host",
    "-h",
    default=None,
    help="Host to bind to [default: config file, else 127.0.0.1]",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file",
)
@click.pass_context
def serve(
    ctx: click.Context,
    port: Optional[int],
    host: Optional[str],
    config: Optional[Path],
) -> None:
    """Start HTTP server."""
    try:
        import uvicorn
        from offrecord.server import create_app
    except ImportError:
        click.echo(
            "Error: Server dependencies not installed. Install with: pip install offrecord[server]",
            err=True,
        )
        sys.exit(1)

    config_data = {}
    if config:
        with open(config, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

    # CLI options win over the config file.
    server_config = config_data.get("server") or {}
    if port is None:
        port = server_config.get("port", 8080)
    if host is None:
        host = server_config.get("host", "127.0.0.1")

    click.echo(f"Starting server on {host}:{port}")

    app = create_app(config_data)

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info" if ctx.obj.get("verbose") else "warning",
    )


@main.command()
@patterns_option
@no_defaults_option
def list_patterns(patterns: tuple[Path, ...], no_defaults: bool) -> None:
    """List available rules."""
    registry = _load(patterns, no_defaults)

    click.echo(f"Loaded {len(registry)} rules\n")

    for registration in registry.get_all():
        env_var = registration.env_var or "-"
        click.echo(
            f"  {registration.name:<20} {env_var:<24} {registration.description}"
        )


if __name__ == "__main__":
    main()
