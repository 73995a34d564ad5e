"""CLI interface for ctxcache.

Typer-based command-line interface. Machine-readable results go to stdout
as JSON; status and errors go to stderr through Rich.
"""

from __future__ import annotations

import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from ctxcache import __version__
from ctxcache.cache import inspect_cache, load_cache
from ctxcache.config import (
    CONFIG_FILE,
    CtxcacheConfig,
    default_config,
    load_config,
    save_config,
)
from ctxcache.exceptions import ConfigError, CtxcacheError
from ctxcache.exit_codes import exit_code_for
from ctxcache.pipeline import BuildPipeline
from ctxcache.select import ContextSelector
from ctxcache.types import Query

__all__ = ["app"]

app = typer.Typer(
    name="context",
    help="Context cache compiler — build deterministic document caches and resolve queries.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
err_console = Console(stderr=True)


class OutputFormat(str, Enum):
    """Rendering of resolve results."""

    JSON = "json"
    PRETTY = "pretty"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _fail(error: CtxcacheError) -> NoReturn:
    """Report an error on stderr and exit with its frozen code."""
    err_console.print(f"[red]error:[/red] {escape(str(error))}", soft_wrap=True)
    raise typer.Exit(code=exit_code_for(error))


def _load_config(path: Path | None) -> CtxcacheConfig:
    """Load ``--config``, else ``./context.toml`` if present, else defaults."""
    if path is not None:
        return load_config(path)
    local = Path(CONFIG_FILE)
    if local.is_file():
        return load_config(local)
    return default_config()


def _resolve_format(fmt: OutputFormat | None, config: CtxcacheConfig) -> OutputFormat:
    if fmt is not None:
        return fmt
    try:
        return OutputFormat(config.resolve.format)
    except ValueError as e:
        raise ConfigError(
            f"Unknown output format {config.resolve.format!r} in config "
            f"(expected one of: {', '.join(f.value for f in OutputFormat)})"
        ) from e


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose logging on stderr"),
    ] = False,
) -> None:
    """Context cache compiler."""
    _setup_logging(verbose)


@app.command()
def version() -> None:
    """Show ctxcache version."""
    typer.echo(f"context {__version__}")


@app.command()
def init(
    path: Annotated[
        Path,
        typer.Option("--path", "-p", help="Where to write the config file"),
    ] = Path(CONFIG_FILE),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file"),
    ] = False,
) -> None:
    """Write a default configuration file."""
    try:
        if path.exists() and not force:
            raise ConfigError(f"Config file already exists: {path} (use --force to overwrite)")
        save_config(default_config(), path)
    except CtxcacheError as e:
        _fail(e)
    err_console.print(f"[green]Wrote default config[/green] to {escape(str(path))}")


@app.command()
def build(
    sources: Annotated[
        Path,
        typer.Option("--sources", help="Directory containing source documents"),
    ],
    cache: Annotated[
        Path,
        typer.Option("--cache", help="Output cache directory"),
    ],
    force: Annotated[
        bool,
        typer.Option("--force", help="Remove existing cache before building"),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Config file (default: ./context.toml if present)"),
    ] = None,
) -> None:
    """Build a context cache from source documents."""
    try:
        config = _load_config(config_path)
        manifest = BuildPipeline(config).run(sources, cache, force=force)
    except CtxcacheError as e:
        _fail(e)

    err_console.print(
        f"Built cache: {manifest.document_count} documents, version {manifest.cache_version}",
        highlight=False,
    )


@app.command()
def resolve(
    cache: Annotated[
        Path,
        typer.Option("--cache", help="Path to a built cache directory"),
    ],
    query: Annotated[
        str,
        typer.Option("--query", help="Search query (empty string is allowed)"),
    ],
    budget: Annotated[
        int,
        typer.Option("--budget", help="Maximum total content bytes (minimum: 0)"),
    ],
    fmt: Annotated[
        OutputFormat | None,
        typer.Option("--format", help="Output format (default from config: json)"),
    ] = None,
    scorer: Annotated[
        str | None,
        typer.Option("--scorer", help="Relevance scorer (default from config: keyword)"),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Config file (default: ./context.toml if present)"),
    ] = None,
) -> None:
    """Resolve context for a query within a budget."""
    try:
        config = _load_config(config_path)
        output_format = _resolve_format(fmt, config)
        selector = ContextSelector.from_name(scorer or config.resolve.scorer)
        context_cache = load_cache(cache)
        result = selector.select(context_cache, Query(query), budget)
    except CtxcacheError as e:
        _fail(e)

    indent = 2 if output_format is OutputFormat.PRETTY else None
    typer.echo(json.dumps(result.to_dict(), indent=indent, ensure_ascii=False))


@app.command()
def inspect(
    cache: Annotated[
        Path,
        typer.Option("--cache", help="Path to a built cache directory"),
    ],
) -> None:
    """Inspect cache state and metadata."""
    try:
        report = inspect_cache(load_cache(cache))
    except CtxcacheError as e:
        _fail(e)

    typer.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
