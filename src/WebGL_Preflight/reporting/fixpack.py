"""Fix pack generator: hosting config files that make a WebGL build load.

Produces literal file contents (``vercel.json``, ``_headers``, ``nginx.conf``,
``.htaccess`` and a README) tailored to which pre-compressed formats the
build ships. This is templated text, not scoring: the same compression flags
and host always yield the same files.
"""

from __future__ import annotations

import io
import json
import logging
import zipfile

from WebGL_Preflight.models.enums import HostTarget
from WebGL_Preflight.models.fixpack import FixPack, FixPackFile, HostRecommendation
from WebGL_Preflight.models.scan import CompressionFlags

logger = logging.getLogger(__name__)

FIX_PACK_FOLDER: str = "webgl-fix-pack"
DEFAULT_PRODUCT_NAME: str = "WebGL Preflight"

# --- File names ---
VERCEL_FILE: str = "vercel.json"
NETLIFY_FILE: str = "_headers"
NGINX_FILE: str = "nginx.conf"
APACHE_FILE: str = ".htaccess"
README_FILE: str = "README.md"

HOST_FILES: dict[HostTarget, tuple[str, ...]] = {
    HostTarget.VERCEL: (VERCEL_FILE,),
    HostTarget.NETLIFY: (NETLIFY_FILE,),
    HostTarget.NGINX: (NGINX_FILE,),
    HostTarget.APACHE: (APACHE_FILE,),
    HostTarget.GENERIC: (NETLIFY_FILE, APACHE_FILE),
}

HOST_LABELS: dict[HostTarget, str] = {
    HostTarget.VERCEL: "Vercel",
    HostTarget.NETLIFY: "Netlify",
    HostTarget.NGINX: "Nginx",
    HostTarget.APACHE: "Apache",
    HostTarget.GENERIC: "Generic Web Host",
}

# --- Serving rules ---
IMMUTABLE_CACHE: str = "public, max-age=31536000, immutable"

# Build asset extension -> MIME type it must be served as
ASSET_TYPES: tuple[tuple[str, str], ...] = (
    ("wasm", "application/wasm"),
    ("js", "application/javascript"),
    ("data", "application/octet-stream"),
)

# --- Quick score bands ---
QUICK_SCORE_EXCELLENT: int = 85
QUICK_SCORE_GOOD: int = 70
QUICK_SCORE_MEDIUM: int = 50

REASON_BROTLI: str = (
    "Brotli (.br) detected. Netlify (or Nginx) tends to be the quickest path to correct "
    "Content-Encoding + headers."
)
REASON_GZIP: str = (
    "Gzip (.gz) detected. Vercel is a good fast default for testing because deploys are "
    "simple and repeatable."
)
REASON_UNCOMPRESSED: str = (
    "No pre-compressed assets detected. A generic host is fine for testing, just ensure "
    "correct MIME for .wasm + sensible caching."
)


def _encodings(compression: CompressionFlags) -> list[tuple[str, str]]:
    """(file suffix, Content-Encoding value) for each format the build ships."""
    encodings: list[tuple[str, str]] = []
    if compression.brotli_present:
        encodings.append(("br", "br"))
    if compression.gzip_present:
        encodings.append(("gz", "gzip"))
    return encodings


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def recommend_host(compression: CompressionFlags) -> HostRecommendation:
    """Pick a sensible first host from the build's compression flags."""
    if compression.brotli_present:
        return HostRecommendation(host=HostTarget.NETLIFY, reason=REASON_BROTLI)
    if compression.gzip_present:
        return HostRecommendation(host=HostTarget.VERCEL, reason=REASON_GZIP)
    return HostRecommendation(host=HostTarget.GENERIC, reason=REASON_UNCOMPRESSED)


def describe_quick_score(score: int) -> str:
    """Plain-language meaning of a quick score."""
    if score >= QUICK_SCORE_EXCELLENT:
        return "Excellent — low risk of common hosting failures."
    if score >= QUICK_SCORE_GOOD:
        return "Good — likely fine, but verify headers + caching."
    if score >= QUICK_SCORE_MEDIUM:
        return "Medium — hosting pitfalls are likely (MIME/encoding/caching)."
    return "High risk — expect black screens or loader/encoding errors until fixed."


def host_label(host: HostTarget) -> str:
    return HOST_LABELS[host]


# ---------------------------------------------------------------------------
# File renderers
# ---------------------------------------------------------------------------


def render_vercel_json(compression: CompressionFlags) -> str:
    """``vercel.json`` with per-asset content types, encodings and caching."""
    headers: list[dict[str, object]] = []
    for extension, mime in ASSET_TYPES:
        headers.append(
            {
                "source": f"/Build/(.*)\\.{extension}",
                "headers": [{"key": "Content-Type", "value": mime}],
            }
        )
        for suffix, encoding in _encodings(compression):
            headers.append(
                {
                    "source": f"/Build/(.*)\\.{extension}\\.{suffix}",
                    "headers": [
                        {"key": "Content-Type", "value": mime},
                        {"key": "Content-Encoding", "value": encoding},
                    ],
                }
            )
    headers.append(
        {
            "source": "/Build/(.*)",
            "headers": [{"key": "Cache-Control", "value": IMMUTABLE_CACHE}],
        }
    )
    return json.dumps({"headers": headers}, indent=2) + "\n"


def render_netlify_headers(compression: CompressionFlags) -> str:
    """Netlify / Cloudflare Pages ``_headers`` file."""
    lines: list[str] = ["# WebGL build serving rules (Netlify / Cloudflare Pages)", ""]
    for extension, mime in ASSET_TYPES:
        lines.append(f"/Build/*.{extension}")
        lines.append(f"  Content-Type: {mime}")
        lines.append("")
        for suffix, encoding in _encodings(compression):
            lines.append(f"/Build/*.{extension}.{suffix}")
            lines.append(f"  Content-Type: {mime}")
            lines.append(f"  Content-Encoding: {encoding}")
            lines.append("")
    lines.append("/Build/*")
    lines.append(f"  Cache-Control: {IMMUTABLE_CACHE}")
    return "\n".join(lines) + "\n"


def render_nginx_conf(compression: CompressionFlags) -> str:
    """``location`` blocks to include inside an nginx ``server { }`` block."""
    lines: list[str] = [
        "# WebGL build serving rules. Include inside your server { } block.",
        "",
    ]
    for extension, mime in ASSET_TYPES:
        for suffix, encoding in _encodings(compression):
            lines.append(f"location ~* \\.{extension}\\.{suffix}$ {{")
            # Pre-compressed files must not be compressed again on the fly.
            lines.append("    gzip off;")
            lines.append("    types { }")
            lines.append(f"    default_type {mime};")
            lines.append(f"    add_header Content-Encoding {encoding};")
            lines.append(f'    add_header Cache-Control "{IMMUTABLE_CACHE}";')
            lines.append("}")
            lines.append("")
    lines.append("location ~* \\.wasm$ {")
    lines.append("    types { }")
    lines.append("    default_type application/wasm;")
    lines.append(f'    add_header Cache-Control "{IMMUTABLE_CACHE}";')
    lines.append("}")
    lines.append("")
    lines.append("location ~* /Build/.+\\.(data|js)$ {")
    lines.append(f'    add_header Cache-Control "{IMMUTABLE_CACHE}";')
    lines.append("}")
    return "\n".join(lines) + "\n"


def render_htaccess(compression: CompressionFlags) -> str:
    """Apache ``.htaccess`` (mod_mime + mod_headers)."""
    lines: list[str] = [
        "# WebGL build serving rules for Apache",
        "",
        "<IfModule mod_mime.c>",
        "  AddType application/wasm .wasm",
    ]
    for suffix, encoding in _encodings(compression):
        lines.append(f"  RemoveType .{suffix}")
        lines.append(f"  AddEncoding {encoding} .{suffix}")
        for extension, mime in ASSET_TYPES:
            lines.append(f"  AddType {mime} .{extension}.{suffix}")
    lines.append("</IfModule>")
    lines.append("")
    lines.append("<IfModule mod_headers.c>")
    lines.append('  <FilesMatch "\\.(data|wasm|js)(\\.br|\\.gz)?$">')
    lines.append(f'    Header set Cache-Control "{IMMUTABLE_CACHE}"')
    lines.append("  </FilesMatch>")
    lines.append("</IfModule>")
    return "\n".join(lines) + "\n"


def render_readme(
    compression: CompressionFlags,
    host: HostTarget,
    file_names: list[str],
    *,
    product_name: str = DEFAULT_PRODUCT_NAME,
) -> str:
    """Instructions explaining what each generated file does and where it goes."""
    detected: list[str] = []
    if compression.brotli_present:
        detected.append("Brotli (.br)")
    if compression.gzip_present:
        detected.append("Gzip (.gz)")

    lines: list[str] = [
        "# WebGL Fix Pack",
        "",
        f"Generated by {product_name} for **{host_label(host)}**.",
        "",
        "## Detected compression",
        "",
        f"- {', '.join(detected) if detected else 'None (uncompressed build)'}",
        "",
        "## Files",
        "",
    ]
    for name in file_names:
        lines.append(f"- `{name}`")
    lines.append("")
    lines.append("## How to use")
    lines.append("")
    lines.extend(_usage_steps(host))
    lines.append("")
    lines.append("## Checklist")
    lines.append("")
    lines.append("- `.wasm` files are served as `application/wasm`.")
    if compression.brotli_present:
        lines.append("- `.br` files are served with `Content-Encoding: br`.")
    if compression.gzip_present:
        lines.append("- `.gz` files are served with `Content-Encoding: gzip`.")
    lines.append("- Files under `Build/` get long-lived immutable cache headers.")
    return "\n".join(lines) + "\n"


def _usage_steps(host: HostTarget) -> list[str]:
    if host == HostTarget.VERCEL:
        return ["Copy `vercel.json` to the root of the deployed folder (next to `index.html`)."]
    if host == HostTarget.NETLIFY:
        return ["Copy `_headers` to the publish directory (next to `index.html`)."]
    if host == HostTarget.NGINX:
        return [
            "Include `nginx.conf` inside the `server { }` block that serves the build,",
            "then reload nginx (`nginx -s reload`).",
        ]
    if host == HostTarget.APACHE:
        return ["Copy `.htaccess` next to `index.html`; `mod_mime` and `mod_headers` must be enabled."]
    return [
        "Use `_headers` on Netlify or Cloudflare Pages style hosts, or `.htaccess` on Apache.",
        "Other hosts need the same MIME, encoding and cache rules set in their dashboard.",
    ]


_RENDERERS = {
    VERCEL_FILE: render_vercel_json,
    NETLIFY_FILE: render_netlify_headers,
    NGINX_FILE: render_nginx_conf,
    APACHE_FILE: render_htaccess,
}


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def generate_fix_pack(
    compression: CompressionFlags,
    host: HostTarget,
    *,
    product_name: str = DEFAULT_PRODUCT_NAME,
) -> FixPack:
    """Generate the host's config files plus a README.

    Args:
        compression: Which pre-compressed formats the build ships.
        host: Target hosting setup.
        product_name: Name credited in the README.

    Returns:
        A FixPack whose files are ordered config files first, README last.
    """
    config_names = list(HOST_FILES[host])
    files = [FixPackFile(path=name, content=_RENDERERS[name](compression)) for name in config_names]
    readme = render_readme(
        compression, host, [*config_names, README_FILE], product_name=product_name
    )
    files.append(FixPackFile(path=README_FILE, content=readme))
    logger.info("Generated fix pack for %s: %s", host.value, ", ".join(f.path for f in files))
    return FixPack(host=host, files=files)


def build_fix_pack_zip(pack: FixPack) -> bytes:
    """Zip the fix pack with every file under ``webgl-fix-pack/``."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for item in pack.files:
            archive.writestr(f"{FIX_PACK_FOLDER}/{item.path}", item.content)
    return buffer.getvalue()
