"""Shared test fixtures for the WebGL Preflight test suite.

Provides in-memory build archives, sample scans, and reference rules so
tests don't need to inline zip construction or large model blocks.
"""

import datetime
import io
import zipfile
from collections.abc import Callable

import pytest

from WebGL_Preflight.models import (
    CompressionFlags,
    HostingCheck,
    HostRules,
    NormalizedScan,
    PlatformRules,
    ScannedFile,
    ScanResult,
    ScanSignals,
    ScanSummary,
    Severity,
)

ZipFactory = Callable[[dict[str, bytes | str]], bytes]

LOADER_SOURCE = (
    "function createUnityInstance(canvas, config) {\n"
    '  var Module = { TOTAL_MEMORY: 268435456, dataUrl: "Build/game.data.br" };\n'
    "}\n"
)
INDEX_HTML = (
    "<!DOCTYPE html><html><body><canvas id=unity-canvas></canvas>"
    '<script src="Build/game.loader.js"></script></body></html>'
)


def _build_zip(entries: dict[str, bytes | str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, payload in entries.items():
            archive.writestr(name, payload)
    return buffer.getvalue()


@pytest.fixture()
def make_zip() -> ZipFactory:
    """Factory building an in-memory zip from ``{name: content}``."""
    return _build_zip


@pytest.fixture()
def brotli_build_zip() -> bytes:
    """A complete Unity WebGL build with Brotli-compressed artifacts."""
    return _build_zip(
        {
            "MyGame/index.html": INDEX_HTML,
            "MyGame/Build/game.loader.js": LOADER_SOURCE,
            "MyGame/Build/game.framework.js.br": b"\x1b" * 2_000,
            "MyGame/Build/game.data.br": b"\x00" * 40_000,
            "MyGame/Build/game.wasm.br": b"\x01" * 20_000,
            "MyGame/TemplateData/style.css": "body { margin: 0; }",
        }
    )


@pytest.fixture()
def gzip_build_zip() -> bytes:
    """A complete build shipping Gzip artifacts only."""
    return _build_zip(
        {
            "index.html": INDEX_HTML,
            "Build/game.loader.js": LOADER_SOURCE,
            "Build/game.framework.js.gz": b"\x1f\x8b" * 500,
            "Build/game.data.gz": b"\x00" * 10_000,
            "Build/game.wasm.gz": b"\x01" * 5_000,
        }
    )


@pytest.fixture()
def sample_scan_result() -> ScanResult:
    """A realistic scan of a Brotli build."""
    return ScanResult(
        quick_score=85,
        compression=CompressionFlags(brotli_present=True, gzip_present=False),
        memory_settings_detected_bytes=[268_435_456],
        files=[
            ScannedFile(name="Build/game.data.br", size_bytes=12_582_912, sha256="a1b2c3d4e5f60718"),
            ScannedFile(name="Build/game.wasm.br", size_bytes=4_194_304, sha256="0f1e2d3c4b5a6978"),
            ScannedFile(name="Build/game.loader.js", size_bytes=20_480, sha256="1122334455667788"),
        ],
        hosting_checks=[
            HostingCheck(check="Brotli assets detected (.br).", severity=Severity.HIGH),
            HostingCheck(
                check="Ensure .wasm is served with MIME type: application/wasm",
                severity=Severity.HIGH,
            ),
            HostingCheck(check="Set long cache headers.", severity=Severity.INFO),
        ],
        scanned_at=datetime.datetime(2025, 3, 1, 12, 0, 0, tzinfo=datetime.UTC),
        build_dir="Build",
        summary=ScanSummary(
            total_bytes=16_797_696,
            file_count=3,
            max_single_file_bytes=12_582_912,
            initial_download_bytes=16_797_696,
        ),
        signals=ScanSignals(sdk_detected=["poki"]),
    )


@pytest.fixture()
def small_scan() -> NormalizedScan:
    """A normalized scan that fits every seeded platform."""
    return NormalizedScan(
        total_bytes=8 * 1024 * 1024,
        initial_download_bytes=6 * 1024 * 1024,
        file_count=12,
        max_single_file_bytes=5 * 1024 * 1024,
        has_brotli=True,
        has_gzip=False,
        requires_spa_fallback=False,
        sdk_detected=["poki"],
    )


@pytest.fixture()
def poki_rules() -> PlatformRules:
    """Poki's limits as seeded in the reference data."""
    return PlatformRules(
        slug="poki",
        name="Poki",
        initial_download_max_mb=10,
        requires_compressed_build=True,
        accepted_compression=["brotli", "gzip"],
        requires_sdk_injection=True,
        sdk_type="poki",
    )


@pytest.fixture()
def crazygames_rules() -> PlatformRules:
    """CrazyGames' limits as seeded in the reference data."""
    return PlatformRules(
        slug="crazygames",
        name="CrazyGames",
        initial_download_max_mb=50,
        total_build_max_mb=250,
        max_file_count=1500,
        requires_compressed_build=True,
        accepted_compression=["brotli", "gzip"],
        requires_sdk_injection=True,
        sdk_type="crazysdk",
    )


@pytest.fixture()
def vercel_rules() -> HostRules:
    """A host that serves everything correctly out of the box."""
    return HostRules(
        slug="vercel",
        name="Vercel",
        supports_brotli=True,
        supports_gzip=True,
        requires_manual_header_config=False,
        default_spa_fallback=True,
        edge_network="vercel-edge",
    )


@pytest.fixture()
def bare_host_rules() -> HostRules:
    """A host with no compression support and manual headers."""
    return HostRules(
        slug="bare",
        name="Bare Static Host",
        supports_brotli=False,
        supports_gzip=False,
        requires_manual_header_config=True,
        default_spa_fallback=False,
    )
