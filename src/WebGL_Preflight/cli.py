"""CLI entry point for WebGL Preflight: deployment-readiness checks for WebGL builds.

Provides the ``webgl-preflight`` command with subcommands for scanning a
build zip, scoring it against distribution platforms and hosts, generating
hosting fix packs, browsing reference data, and serving the HTTP API.

This is the ONLY module where ``print()``-style console output is allowed.
All other modules use ``logging``. Async internals are bridged to typer's
synchronous interface via ``asyncio.run()``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from WebGL_Preflight.analysis import (
    inspect_build_zip,
    normalize_scan,
    rank_platforms,
    score_launch,
)
from WebGL_Preflight.config import AppConfig
from WebGL_Preflight.logging_config import configure_logging
from WebGL_Preflight.models import HostTarget, ScanResult
from WebGL_Preflight.reporting import (
    build_fix_pack_zip,
    generate_fix_pack,
    recommend_host,
    render_history,
    render_hosts,
    render_launch_score,
    render_platform_comparison,
    render_platforms,
    render_scan_result,
)
from WebGL_Preflight.utils.exceptions import BuildScanError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(name="webgl-preflight", help="Deployment-readiness checks for WebGL builds")

# Rich console for formatted output
console = Console()

# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

ZipArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to the WebGL build zip", exists=True, dir_okay=False, readable=True
    ),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")]
QuietOption = Annotated[bool, typer.Option("--quiet", "-q", help="Suppress info logging")]
DbOption = Annotated[
    str | None, typer.Option("--db", help="SQLite database path (default: PREFLIGHT_DB_PATH)")
]

DEFAULT_SERVE_HOST: str = "127.0.0.1"
DEFAULT_SERVE_PORT: int = 8000
DEFAULT_FIX_PACK_OUTPUT: str = "webgl-fix-pack.zip"


def _load_config(db_path: str | None = None) -> AppConfig:
    config = AppConfig.from_env()
    if db_path:
        config = config.model_copy(update={"db_path": db_path})
    return config


def _inspect(path: Path, config: AppConfig) -> ScanResult:
    """Scan a zip from disk, turning scan failures into a clean CLI exit."""
    try:
        return inspect_build_zip(
            path.read_bytes(),
            archive_name=path.name,
            require_build_root=config.require_build_root,
            max_archive_bytes=config.max_upload_bytes,
        )
    except BuildScanError as exc:
        console.print(f"[red]Scan failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc


# ---------------------------------------------------------------------------
# scan command
# ---------------------------------------------------------------------------


@app.command()
def scan(
    archive: ZipArgument,
    as_json: Annotated[bool, typer.Option("--json", help="Print the raw scan JSON")] = False,
    require_build_root: Annotated[
        bool, typer.Option(help="Fail if no Build/ folder with data + wasm is found")
    ] = False,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Inspect a build zip and show its quick score and hosting checks."""
    configure_logging(verbose=verbose, quiet=quiet)
    config = _load_config()
    if require_build_root:
        config = config.model_copy(update={"require_build_root": True})

    result = _inspect(archive, config)
    if as_json:
        console.print_json(result.model_dump_json())
    else:
        render_scan_result(result, archive_name=archive.name)


# ---------------------------------------------------------------------------
# score / compare commands
# ---------------------------------------------------------------------------


@app.command()
def score(
    archive: ZipArgument,
    platform: Annotated[str, typer.Option(help="Platform slug, e.g. poki")],
    host: Annotated[str, typer.Option(help="Host slug, e.g. vercel")],
    db: DbOption = None,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Score a build for one distribution platform on one host."""
    configure_logging(verbose=verbose, quiet=quiet)
    config = _load_config(db)
    result = _inspect(archive, config)
    asyncio.run(_score_async(result, platform_slug=platform, host_slug=host, db_path=config.db_path))


async def _score_async(
    result: ScanResult, *, platform_slug: str, host_slug: str, db_path: str
) -> None:
    from WebGL_Preflight.data import Database, Repository

    async with Database(db_path) as database:
        repo = Repository(database)
        platform = await repo.get_platform(platform_slug)
        host = await repo.get_host(host_slug)

    if platform is None:
        console.print(f"[red]Unknown platform:[/red] {platform_slug}")
        raise typer.Exit(code=1)
    if host is None:
        console.print(f"[red]Unknown host:[/red] {host_slug}")
        raise typer.Exit(code=1)

    normalized = normalize_scan(result.model_dump(mode="json"))
    render_launch_score(score_launch(normalized, platform, host), platform, host)


@app.command()
def compare(
    archive: ZipArgument,
    host: Annotated[str, typer.Option(help="Host slug, e.g. netlify")],
    db: DbOption = None,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Rank every known platform for a build on one host."""
    configure_logging(verbose=verbose, quiet=quiet)
    config = _load_config(db)
    result = _inspect(archive, config)
    asyncio.run(_compare_async(result, host_slug=host, db_path=config.db_path))


async def _compare_async(result: ScanResult, *, host_slug: str, db_path: str) -> None:
    from WebGL_Preflight.data import Database, Repository

    async with Database(db_path) as database:
        repo = Repository(database)
        host = await repo.get_host(host_slug)
        platforms = await repo.list_platforms()

    if host is None:
        console.print(f"[red]Unknown host:[/red] {host_slug}")
        raise typer.Exit(code=1)

    normalized = normalize_scan(result.model_dump(mode="json"))
    render_platform_comparison(rank_platforms(normalized, platforms, host), host)


# ---------------------------------------------------------------------------
# fixpack command
# ---------------------------------------------------------------------------


@app.command()
def fixpack(
    archive: ZipArgument,
    host: Annotated[
        HostTarget | None,
        typer.Option(help="Target host; defaults to the recommended one"),
    ] = None,
    output: Annotated[
        Path, typer.Option("--output", "-o", help="Where to write the fix-pack zip")
    ] = Path(DEFAULT_FIX_PACK_OUTPUT),
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Write a zip of hosting config files tailored to the build."""
    configure_logging(verbose=verbose, quiet=quiet)
    result = _inspect(archive, _load_config())

    if host is None:
        recommendation = recommend_host(result.compression)
        host = recommendation.host
        console.print(f"Recommended host: [bold]{host.value}[/bold]")
        console.print(f"[dim]{recommendation.reason}[/dim]")

    pack = generate_fix_pack(result.compression, host)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(build_fix_pack_zip(pack))
    console.print(f"[green]Fix pack written to {output}[/green] ({', '.join(pack.file_names())})")


# ---------------------------------------------------------------------------
# reference data and history
# ---------------------------------------------------------------------------


@app.command()
def platforms(db: DbOption = None, verbose: VerboseOption = False) -> None:
    """List distribution platforms and their limits."""
    configure_logging(verbose=verbose, quiet=not verbose)
    asyncio.run(_platforms_async(_load_config(db).db_path))


async def _platforms_async(db_path: str) -> None:
    from WebGL_Preflight.data import Database, Repository

    async with Database(db_path) as database:
        render_platforms(await Repository(database).list_platforms())


@app.command()
def hosts(db: DbOption = None, verbose: VerboseOption = False) -> None:
    """List hosting providers and what they serve out of the box."""
    configure_logging(verbose=verbose, quiet=not verbose)
    asyncio.run(_hosts_async(_load_config(db).db_path))


async def _hosts_async(db_path: str) -> None:
    from WebGL_Preflight.data import Database, Repository

    async with Database(db_path) as database:
        render_hosts(await Repository(database).list_hosts())


@app.command()
def history(
    email: Annotated[str, typer.Argument(help="Owner email")],
    db: DbOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show the projects and builds saved for an email."""
    configure_logging(verbose=verbose, quiet=not verbose)
    asyncio.run(_history_async(email, _load_config(db).db_path))


async def _history_async(email: str, db_path: str) -> None:
    from WebGL_Preflight.data import Database, Repository

    async with Database(db_path) as database:
        projects = await Repository(database).list_history(email)
    render_history(email, projects)


# ---------------------------------------------------------------------------
# serve command
# ---------------------------------------------------------------------------


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Interface to bind")] = DEFAULT_SERVE_HOST,
    port: Annotated[int, typer.Option(help="Port to listen on")] = DEFAULT_SERVE_PORT,
    db: DbOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from WebGL_Preflight.web.app import create_app

    config = _load_config(db)
    configure_logging(level=config.log_level, verbose=verbose)
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)


if __name__ == "__main__":
    app()
