"""Tests for the CLI entry point (typer app).

Commands run end to end against real zips in ``tmp_path`` and a throwaway
SQLite file. Console output goes to a captured Rich Console shared by the
CLI and the terminal renderers.
"""

from __future__ import annotations

import asyncio
import datetime
import io
import json
import re
import zipfile
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from WebGL_Preflight.cli import app
from WebGL_Preflight.data import Database, Repository
from WebGL_Preflight.data.repository import new_id
from WebGL_Preflight.models.records import Build

runner = CliRunner()

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")

OWNER = "dev@example.com"


@pytest.fixture(autouse=True)
def captured(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Console]:
    """Route all console output to one buffer and keep logging untouched."""
    monkeypatch.setenv("PREFLIGHT_DB_PATH", str(tmp_path / "env.db"))
    console = Console(file=io.StringIO(), force_terminal=True, width=160)
    with (
        patch("WebGL_Preflight.cli.console", console),
        patch("WebGL_Preflight.reporting.terminal.console", console),
        patch("WebGL_Preflight.cli.configure_logging"),
    ):
        yield console


def _output(console: Console) -> str:
    return _ANSI_ESCAPE.sub("", console.file.getvalue())  # type: ignore[attr-defined]


@pytest.fixture()
def build_zip(tmp_path: Path, brotli_build_zip: bytes) -> Path:
    path = tmp_path / "space-game.zip"
    path.write_bytes(brotli_build_zip)
    return path


@pytest.fixture()
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "preflight.db")


# ---------------------------------------------------------------------------
# Command registration
# ---------------------------------------------------------------------------


class TestCommandRegistration:
    @pytest.mark.parametrize(
        "command",
        ["scan", "score", "compare", "fixpack", "platforms", "hosts", "history", "serve"],
    )
    def test_help(self, command: str) -> None:
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0
        assert "Usage" in result.output

    def test_root_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("scan", "score", "compare", "fixpack"):
            assert command in result.output


# ---------------------------------------------------------------------------
# scan
# ---------------------------------------------------------------------------


class TestScanCommand:
    def test_renders_scan(self, build_zip: Path, captured: Console) -> None:
        result = runner.invoke(app, ["scan", str(build_zip)])
        assert result.exit_code == 0
        out = _output(captured)
        assert "space-game.zip" in out
        assert "Quick score: 85/100" in out
        assert "Build folder: MyGame/Build" in out
        assert "Recommended host: netlify" in out
        assert "Hosting Checks" in out

    def test_json_output(self, build_zip: Path, captured: Console) -> None:
        result = runner.invoke(app, ["scan", str(build_zip), "--json"])
        assert result.exit_code == 0
        payload = json.loads(_output(captured))
        assert payload["kind"] == "webgl_build_scan"
        assert payload["quick_score"] == 85

    def test_invalid_zip_fails_cleanly(self, tmp_path: Path, captured: Console) -> None:
        bogus = tmp_path / "bogus.zip"
        bogus.write_bytes(b"not a zip at all")
        result = runner.invoke(app, ["scan", str(bogus)])
        assert result.exit_code == 1
        assert "Scan failed" in _output(captured)

    def test_require_build_root(self, tmp_path: Path, captured: Console) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("index.html", "<html></html>")
        flat = tmp_path / "flat.zip"
        flat.write_bytes(buffer.getvalue())

        assert runner.invoke(app, ["scan", str(flat)]).exit_code == 0
        result = runner.invoke(app, ["scan", str(flat), "--require-build-root"])
        assert result.exit_code == 1
        assert "Build folder" in _output(captured)

    def test_missing_file_is_usage_error(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["scan", str(tmp_path / "missing.zip")])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# score / compare
# ---------------------------------------------------------------------------


class TestScoreCommand:
    def test_scores_platform_on_host(
        self, build_zip: Path, db_path: str, captured: Console
    ) -> None:
        result = runner.invoke(
            app,
            ["score", str(build_zip), "--platform", "poki", "--host", "vercel", "--db", db_path],
        )
        assert result.exit_code == 0
        out = _output(captured)
        assert "Poki on Vercel" in out
        assert "Readiness:" in out
        assert "Platform fit" in out
        assert "Host compatibility" in out

    def test_unknown_platform(self, build_zip: Path, db_path: str, captured: Console) -> None:
        result = runner.invoke(
            app,
            ["score", str(build_zip), "--platform", "newgrounds", "--host", "vercel", "--db", db_path],
        )
        assert result.exit_code == 1
        assert "Unknown platform" in _output(captured)

    def test_unknown_host(self, build_zip: Path, db_path: str, captured: Console) -> None:
        result = runner.invoke(
            app,
            ["score", str(build_zip), "--platform", "poki", "--host", "geocities", "--db", db_path],
        )
        assert result.exit_code == 1
        assert "Unknown host" in _output(captured)


class TestCompareCommand:
    def test_ranks_platforms(self, build_zip: Path, db_path: str, captured: Console) -> None:
        result = runner.invoke(app, ["compare", str(build_zip), "--host", "netlify", "--db", db_path])
        assert result.exit_code == 0
        out = _output(captured)
        assert "Platforms on Netlify" in out
        for name in ("Poki", "CrazyGames", "itch.io"):
            assert name in out

    def test_unknown_host(self, build_zip: Path, db_path: str, captured: Console) -> None:
        result = runner.invoke(app, ["compare", str(build_zip), "--host", "geocities", "--db", db_path])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# fixpack
# ---------------------------------------------------------------------------


class TestFixpackCommand:
    def test_recommended_host(self, build_zip: Path, tmp_path: Path, captured: Console) -> None:
        output = tmp_path / "out" / "pack.zip"
        result = runner.invoke(app, ["fixpack", str(build_zip), "-o", str(output)])
        assert result.exit_code == 0
        assert "Recommended host: netlify" in _output(captured)

        with zipfile.ZipFile(output) as archive:
            names = sorted(archive.namelist())
        assert names == ["webgl-fix-pack/README.md", "webgl-fix-pack/_headers"]

    def test_explicit_host(self, build_zip: Path, tmp_path: Path, captured: Console) -> None:
        output = tmp_path / "vercel.zip"
        result = runner.invoke(
            app, ["fixpack", str(build_zip), "--host", "vercel", "--output", str(output)]
        )
        assert result.exit_code == 0
        assert "Recommended host" not in _output(captured)
        with zipfile.ZipFile(output) as archive:
            vercel = json.loads(archive.read("webgl-fix-pack/vercel.json"))
        assert "headers" in vercel

    def test_invalid_host_rejected(self, build_zip: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["fixpack", str(build_zip), "--host", "geocities", "-o", str(tmp_path / "x.zip")]
        )
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# reference data and history
# ---------------------------------------------------------------------------


class TestReferenceCommands:
    def test_platforms(self, db_path: str, captured: Console) -> None:
        result = runner.invoke(app, ["platforms", "--db", db_path])
        assert result.exit_code == 0
        out = _output(captured)
        assert "Platforms" in out
        assert "Poki" in out
        assert "CrazyGames" in out

    def test_hosts(self, db_path: str, captured: Console) -> None:
        result = runner.invoke(app, ["hosts", "--db", db_path])
        assert result.exit_code == 0
        out = _output(captured)
        assert "Vercel" in out
        assert "Cloudflare Pages" in out

    def test_uses_env_db_by_default(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["platforms"])
        assert result.exit_code == 0
        assert (tmp_path / "env.db").exists()


async def _seed_build(db_path: str) -> str:
    async with Database(db_path) as database:
        repo = Repository(database)
        await repo.upsert_account(OWNER)
        project = await repo.get_or_create_project(OWNER, "Space Game")
        build = Build(
            id=new_id(),
            project_id=project.id,
            owner_email=OWNER,
            version_label="v2.0",
            created_at=datetime.datetime(2025, 3, 1, 12, 30, tzinfo=datetime.UTC),
            quick_score=85,
        )
        await repo.save_build(build)
        return build.id


class TestHistoryCommand:
    def test_empty(self, db_path: str, captured: Console) -> None:
        result = runner.invoke(app, ["history", OWNER, "--db", db_path])
        assert result.exit_code == 0
        assert f"No builds recorded for {OWNER}" in _output(captured)

    def test_lists_builds(self, db_path: str, captured: Console) -> None:
        build_id = asyncio.run(_seed_build(db_path))
        result = runner.invoke(app, ["history", OWNER, "--db", db_path])
        assert result.exit_code == 0
        out = _output(captured)
        assert "Space Game" in out
        assert build_id in out
        assert "v2.0" in out
        assert "2025-03-01 12:30" in out
