"""Archive inspector: static deployment-readiness scan of a WebGL build zip.

Walks the zip central directory, classifies entries by suffix, pulls memory
hints out of loader scripts, and computes a fast heuristic quick score. The
scan is a pure function of the archive bytes apart from ``scanned_at``.

Work is bounded regardless of archive size: at most
:data:`MAX_LOADER_SCRIPTS` loaders and :data:`MAX_HTML_SCANNED` html pages are
decoded, and at most :data:`MAX_EXTRA_FILES` entries beyond the important set
are read in full.

Build-root policy: by default an archive without a ``Build/`` folder still
gets a (penalized) score. With ``require_build_root=True`` it is rejected with
:class:`BuildRootNotFoundError`.
"""

import datetime
import hashlib
import io
import logging
import posixpath
import re
import zipfile
import zlib
from collections.abc import Iterable, Sequence

from WebGL_Preflight.models.enums import Severity
from WebGL_Preflight.models.scan import (
    MEMORY_HINT_CEILING_BYTES,
    MEMORY_HINT_FLOOR_BYTES,
    QUICK_SCORE_MAX,
    QUICK_SCORE_MIN,
    CompressionFlags,
    HostingCheck,
    ScanResult,
    ScannedFile,
    ScanSignals,
    ScanSummary,
)
from WebGL_Preflight.utils.exceptions import (
    ArchiveTooLargeError,
    BuildRootNotFoundError,
    InvalidArchiveError,
)

logger = logging.getLogger(__name__)

# --- Work bounds ---
MAX_LOADER_SCRIPTS: int = 5
MAX_EXTRA_FILES: int = 25
MAX_HTML_SCANNED: int = 3
DIGEST_LENGTH: int = 16

# --- Quick score weights ---
QUICK_SCORE_BASE: int = 50
BONUS_BROTLI: int = 20
BONUS_GZIP: int = 10
BONUS_COMPLETE_BUILD: int = 15
PENALTY_NO_WASM: int = 25
PENALTY_NO_LOADER: int = 25

# --- Entry classification ---
DATA_SUFFIXES: tuple[str, ...] = (".data", ".data.br", ".data.gz")
WASM_SUFFIXES: tuple[str, ...] = (".wasm", ".wasm.br", ".wasm.gz")
FRAMEWORK_SUFFIXES: tuple[str, ...] = (".framework.js", ".framework.js.br", ".framework.js.gz")
LOADER_SUFFIXES: tuple[str, ...] = (".loader.js", ".loader.js.br", ".loader.js.gz")
BUILD_ASSET_SUFFIXES: tuple[str, ...] = (
    *DATA_SUFFIXES,
    *WASM_SUFFIXES,
    *FRAMEWORK_SUFFIXES,
    *LOADER_SUFFIXES,
)
IMPORTANT_SUFFIXES: tuple[str, ...] = (*BUILD_ASSET_SUFFIXES, "index.html")

BUILD_DIR_NAME: str = "build"

# Compressed variant suffix -> preference when several variants of one asset ship
_VARIANT_RANKS: dict[str, int] = {".br": 0, ".gz": 1}

# Matches e.g. TOTAL_MEMORY: 268435456, "TOTAL_MEMORY": 268435456, memory=268435456
_MEMORY_HINT_PATTERN = re.compile(r"(TOTAL_MEMORY|totalMemory|memory)[\"']?\s*[:=]\s*(\d{7,12})")

# SDK tag -> marker strings that betray its injection into the page or loader
SDK_MARKERS: dict[str, tuple[str, ...]] = {
    "poki": ("poki-sdk", "PokiSDK"),
    "crazysdk": ("crazygames-sdk", "CrazyGames.SDK"),
}

# --- Hosting check copy ---
CHECK_BROTLI: str = (
    "Brotli assets detected (.br). Your host must send Content-Encoding: br for those files."
)
CHECK_GZIP: str = (
    "Gzip assets detected (.gz). Your host must send Content-Encoding: gzip for those files."
)
CHECK_WASM_MIME: str = "Ensure .wasm is served with MIME type: application/wasm"
CHECK_CACHE: str = (
    "Set long cache headers for immutable build files (Build/*.data, *.wasm, *.js) "
    "to improve load speed."
)

# Everything zipfile/zlib can raise while decompressing a damaged or exotic member.
_MEMBER_READ_ERRORS: tuple[type[Exception], ...] = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
    OSError,
)


def inspect_build_zip(
    data: bytes,
    *,
    archive_name: str | None = None,
    require_build_root: bool = False,
    max_archive_bytes: int | None = None,
) -> ScanResult:
    """Inspect raw zip bytes and return a :class:`ScanResult`.

    Args:
        data: The uploaded archive.
        archive_name: Original file name, used only in error messages and logs.
        require_build_root: Reject archives without a ``Build/`` folder holding
            both data and wasm artifacts.
        max_archive_bytes: Optional ceiling on ``len(data)``.

    Returns:
        The complete scan. Nothing partial is ever returned.

    Raises:
        ArchiveTooLargeError: ``data`` exceeds ``max_archive_bytes``.
        InvalidArchiveError: ``data`` is not a readable zip, or a member that
            had to be read is corrupt.
        BuildRootNotFoundError: ``require_build_root`` is set and no build
            folder was found.
    """
    label = archive_name or "<upload>"
    if max_archive_bytes is not None and len(data) > max_archive_bytes:
        msg = f"Archive is {len(data)} bytes, larger than the {max_archive_bytes}-byte limit."
        raise ArchiveTooLargeError(
            msg,
            size_bytes=len(data),
            limit_bytes=max_archive_bytes,
            archive_name=archive_name,
        )

    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, OSError) as exc:
        msg = f"Not a readable zip archive: {exc}"
        raise InvalidArchiveError(msg, archive_name=archive_name) from exc

    with archive:
        entries = [info for info in archive.infolist() if not info.is_dir()]
        names = [info.filename for info in entries]

        build_dir = find_build_dir(names)
        if require_build_root and build_dir is None:
            msg = (
                "Could not locate a WebGL Build folder (a 'Build' directory containing "
                ".data and .wasm files). Zip the whole build output, not just its contents."
            )
            raise BuildRootNotFoundError(msg, archive_name=archive_name)

        brotli_present = any(_lower(n).endswith(".br") for n in names)
        gzip_present = any(_lower(n).endswith(".gz") for n in names)
        loaders = [info for info in entries if is_loader_script(info.filename)]
        has_data = any(_has_suffix(n, DATA_SUFFIXES) for n in names)
        has_wasm = any(_has_suffix(n, WASM_SUFFIXES) for n in names)

        loader_texts = [
            _decode(_read_member(archive, info, archive_name)) for info in loaders[:MAX_LOADER_SCRIPTS]
        ]
        html_entries = [info for info in entries if _lower(info.filename).endswith(".html")]
        html_texts = [
            _decode(_read_member(archive, info, archive_name))
            for info in html_entries[:MAX_HTML_SCANNED]
        ]

        files = _sample_files(archive, entries, archive_name)

    quick_score = compute_quick_score(
        brotli_present=brotli_present,
        gzip_present=gzip_present,
        has_data=has_data,
        has_wasm=has_wasm,
        has_loader=bool(loaders),
    )

    result = ScanResult(
        quick_score=quick_score,
        compression=CompressionFlags(brotli_present=brotli_present, gzip_present=gzip_present),
        memory_settings_detected_bytes=extract_memory_hints(loader_texts),
        files=files,
        hosting_checks=build_hosting_checks(
            brotli_present=brotli_present, gzip_present=gzip_present
        ),
        scanned_at=datetime.datetime.now(datetime.UTC),
        build_dir=build_dir,
        summary=_summarize(entries, build_dir),
        signals=ScanSignals(sdk_detected=detect_sdks([*loader_texts, *html_texts])),
    )
    logger.info(
        "Scanned %s: %d entries, %d loader(s), brotli=%s gzip=%s quick_score=%d",
        label,
        len(entries),
        len(loaders),
        brotli_present,
        gzip_present,
        quick_score,
    )
    return result


def compute_quick_score(
    *,
    brotli_present: bool,
    gzip_present: bool,
    has_data: bool,
    has_wasm: bool,
    has_loader: bool,
) -> int:
    """Heuristic readiness estimate clamped to [0, 100].

    Missing wasm or loader is treated as near-fatal; pre-compressed assets
    are rewarded as a sign of a production build.
    """
    score = QUICK_SCORE_BASE
    if brotli_present:
        score += BONUS_BROTLI
    if gzip_present:
        score += BONUS_GZIP
    if has_data and has_wasm and has_loader:
        score += BONUS_COMPLETE_BUILD
    if not has_wasm:
        score -= PENALTY_NO_WASM
    if not has_loader:
        score -= PENALTY_NO_LOADER
    return max(QUICK_SCORE_MIN, min(QUICK_SCORE_MAX, score))


def extract_memory_hints(texts: Iterable[str]) -> list[int]:
    """Collect plausible memory sizes from loader script text.

    Values outside (32 MiB, 8 GiB) are regex false positives and dropped.
    """
    found: set[int] = set()
    for text in texts:
        for match in _MEMORY_HINT_PATTERN.finditer(text):
            value = int(match.group(2))
            if MEMORY_HINT_FLOOR_BYTES < value < MEMORY_HINT_CEILING_BYTES:
                found.add(value)
    return sorted(found)


def build_hosting_checks(*, brotli_present: bool, gzip_present: bool) -> list[HostingCheck]:
    """Advisory reminders. Host capability is cross-checked by the fit scorer."""
    checks: list[HostingCheck] = []
    if brotli_present:
        checks.append(HostingCheck(check=CHECK_BROTLI, severity=Severity.HIGH))
    if gzip_present:
        checks.append(HostingCheck(check=CHECK_GZIP, severity=Severity.MEDIUM))
    checks.append(HostingCheck(check=CHECK_WASM_MIME, severity=Severity.HIGH))
    checks.append(HostingCheck(check=CHECK_CACHE, severity=Severity.INFO))
    return checks


def detect_sdks(texts: Iterable[str]) -> list[str]:
    """Return the sorted SDK tags whose markers appear in any of ``texts``."""
    corpus = list(texts)
    return sorted(
        tag
        for tag, markers in SDK_MARKERS.items()
        if any(marker in text for text in corpus for marker in markers)
    )


def find_build_dir(names: Sequence[str]) -> str | None:
    """Locate the shallowest ``Build`` folder that directly holds data and wasm files."""
    by_dir: dict[str, list[str]] = {}
    for name in names:
        directory, base = posixpath.split(name)
        by_dir.setdefault(directory, []).append(base)

    candidates = [
        directory
        for directory, bases in by_dir.items()
        if posixpath.basename(directory).lower() == BUILD_DIR_NAME
        and any(_has_suffix(b, DATA_SUFFIXES) for b in bases)
        and any(_has_suffix(b, WASM_SUFFIXES) for b in bases)
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda d: (d.count("/"), d))


def is_loader_script(name: str) -> bool:
    """Loader = a ``.js`` entry whose name mentions ``loader``."""
    lowered = _lower(name)
    return lowered.endswith(".js") and "loader" in lowered


def is_important(name: str) -> bool:
    """Entries always included in the file listing."""
    lowered = _lower(name)
    return _has_suffix(lowered, IMPORTANT_SUFFIXES) or f"{BUILD_DIR_NAME}/" in lowered


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _sample_files(
    archive: zipfile.ZipFile,
    entries: Sequence[zipfile.ZipInfo],
    archive_name: str | None,
) -> list[ScannedFile]:
    """Read the important entries plus a bounded sample of the rest."""
    important = [info for info in entries if is_important(info.filename)]
    others = [info for info in entries if not is_important(info.filename)]

    # Duplicate names in a zip keep the last occurrence.
    targets: dict[str, zipfile.ZipInfo] = {}
    for info in [*important, *others[:MAX_EXTRA_FILES]]:
        targets[info.filename] = info

    files: list[ScannedFile] = []
    for name, info in targets.items():
        payload = _read_member(archive, info, archive_name)
        files.append(
            ScannedFile(
                name=name,
                size_bytes=len(payload),
                sha256=hashlib.sha256(payload).hexdigest()[:DIGEST_LENGTH],
            )
        )
    files.sort(key=lambda f: (-f.size_bytes, f.name))
    return files


def _summarize(entries: Sequence[zipfile.ZipInfo], build_dir: str | None) -> ScanSummary:
    """Totals from the central directory; nothing is decompressed here."""
    sizes = [info.file_size for info in entries]
    return ScanSummary(
        total_bytes=sum(sizes),
        file_count=len(entries),
        max_single_file_bytes=max(sizes) if sizes else None,
        initial_download_bytes=_initial_download_bytes(entries, build_dir),
    )


def _initial_download_bytes(
    entries: Sequence[zipfile.ZipInfo], build_dir: str | None
) -> int | None:
    """Bytes a player fetches before the game starts.

    With a build folder, only its artifacts plus the ``index.html`` beside it
    count. Each asset counts once: when several variants ship (``game.data``,
    ``game.data.br``), the Brotli one wins over Gzip, and Gzip over raw.
    Without a build folder every important entry is considered.
    """
    if build_dir is None:
        scope = [info for info in entries if _has_suffix(info.filename, IMPORTANT_SUFFIXES)]
    else:
        page = _lower(posixpath.join(posixpath.dirname(build_dir), "index.html"))
        scope = [
            info
            for info in entries
            if _lower(info.filename) == page
            or (
                posixpath.dirname(info.filename) == build_dir
                and _has_suffix(info.filename, BUILD_ASSET_SUFFIXES)
            )
        ]

    chosen: dict[str, tuple[int, int]] = {}
    for info in scope:
        asset, rank = _asset_variant(info.filename)
        if asset not in chosen or rank <= chosen[asset][0]:
            chosen[asset] = (rank, info.file_size)
    if not chosen:
        return None
    return sum(size for _, size in chosen.values())


def _asset_variant(name: str) -> tuple[str, int]:
    """Split ``name`` into its uncompressed asset name and a variant preference rank."""
    lowered = _lower(name)
    for suffix, rank in _VARIANT_RANKS.items():
        if lowered.endswith(suffix):
            return lowered.removesuffix(suffix), rank
    return lowered, len(_VARIANT_RANKS)


def _read_member(
    archive: zipfile.ZipFile,
    info: zipfile.ZipInfo,
    archive_name: str | None,
) -> bytes:
    try:
        return archive.read(info)
    except _MEMBER_READ_ERRORS as exc:
        msg = f"Could not read '{info.filename}' from archive: {exc}"
        raise InvalidArchiveError(msg, archive_name=archive_name) from exc


def _decode(payload: bytes) -> str:
    return payload.decode("utf-8", errors="replace")


def _lower(name: str) -> str:
    return name.lower()


def _has_suffix(name: str, suffixes: tuple[str, ...]) -> bool:
    return _lower(name).endswith(suffixes)
