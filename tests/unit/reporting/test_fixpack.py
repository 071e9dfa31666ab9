"""Tests for fix pack generation: host recommendation, file rendering, zipping."""

import io
import json
import zipfile

import pytest

from WebGL_Preflight.models.enums import HostTarget
from WebGL_Preflight.models.scan import CompressionFlags
from WebGL_Preflight.reporting.fixpack import (
    FIX_PACK_FOLDER,
    IMMUTABLE_CACHE,
    build_fix_pack_zip,
    describe_quick_score,
    generate_fix_pack,
    host_label,
    recommend_host,
    render_htaccess,
    render_netlify_headers,
    render_nginx_conf,
    render_readme,
    render_vercel_json,
)

BROTLI = CompressionFlags(brotli_present=True, gzip_present=False)
GZIP = CompressionFlags(brotli_present=False, gzip_present=True)
BOTH = CompressionFlags(brotli_present=True, gzip_present=True)
NONE = CompressionFlags(brotli_present=False, gzip_present=False)


class TestRecommendHost:
    def test_brotli_prefers_netlify(self) -> None:
        assert recommend_host(BROTLI).host == HostTarget.NETLIFY

    def test_brotli_wins_over_gzip(self) -> None:
        assert recommend_host(BOTH).host == HostTarget.NETLIFY

    def test_gzip_prefers_vercel(self) -> None:
        assert recommend_host(GZIP).host == HostTarget.VERCEL

    def test_uncompressed_gets_generic(self) -> None:
        recommendation = recommend_host(NONE)
        assert recommendation.host == HostTarget.GENERIC
        assert ".wasm" in recommendation.reason


class TestDescribeQuickScore:
    @pytest.mark.parametrize(
        ("score", "prefix"),
        [(100, "Excellent"), (85, "Excellent"), (84, "Good"), (70, "Good"), (50, "Medium"), (49, "High risk")],
    )
    def test_bands(self, score: int, prefix: str) -> None:
        assert describe_quick_score(score).startswith(prefix)


class TestVercelJson:
    def test_valid_json_with_wasm_type(self) -> None:
        config = json.loads(render_vercel_json(NONE))
        sources = {rule["source"]: rule["headers"] for rule in config["headers"]}
        assert sources["/Build/(.*)\\.wasm"] == [{"key": "Content-Type", "value": "application/wasm"}]
        assert sources["/Build/(.*)"] == [{"key": "Cache-Control", "value": IMMUTABLE_CACHE}]

    def test_brotli_rules(self) -> None:
        config = json.loads(render_vercel_json(BROTLI))
        sources = {rule["source"]: rule["headers"] for rule in config["headers"]}
        assert {"key": "Content-Encoding", "value": "br"} in sources["/Build/(.*)\\.data\\.br"]
        assert not any(source.endswith("\\.gz") for source in sources)

    def test_ends_with_newline(self) -> None:
        assert render_vercel_json(GZIP).endswith("}\n")


class TestNetlifyHeaders:
    def test_gzip_encoding(self) -> None:
        text = render_netlify_headers(GZIP)
        assert "/Build/*.wasm.gz\n  Content-Type: application/wasm\n  Content-Encoding: gzip" in text
        assert "Content-Encoding: br" not in text

    def test_cache_rule_always_present(self) -> None:
        assert f"/Build/*\n  Cache-Control: {IMMUTABLE_CACHE}" in render_netlify_headers(NONE)


class TestNginxConf:
    def test_precompressed_locations_disable_gzip(self) -> None:
        text = render_nginx_conf(BROTLI)
        assert "location ~* \\.wasm\\.br$ {" in text
        assert "    gzip off;" in text
        assert "add_header Content-Encoding br;" in text

    def test_uncompressed_still_sets_wasm_type(self) -> None:
        text = render_nginx_conf(NONE)
        assert "default_type application/wasm;" in text
        assert "Content-Encoding" not in text

    def test_braces_balanced(self) -> None:
        text = render_nginx_conf(BOTH)
        assert text.count("{") == text.count("}")


class TestHtaccess:
    def test_encodings(self) -> None:
        text = render_htaccess(BOTH)
        assert "AddEncoding br .br" in text
        assert "AddEncoding gzip .gz" in text
        assert "AddType application/wasm .wasm.br" in text

    def test_uncompressed(self) -> None:
        text = render_htaccess(NONE)
        assert "AddType application/wasm .wasm" in text
        assert "AddEncoding" not in text


class TestReadme:
    def test_lists_files_and_host(self) -> None:
        text = render_readme(GZIP, HostTarget.VERCEL, ["vercel.json", "README.md"])
        assert "**Vercel**" in text
        assert "- `vercel.json`" in text
        assert "Gzip (.gz)" in text
        assert "Content-Encoding: gzip" in text

    def test_uncompressed_build(self) -> None:
        text = render_readme(NONE, HostTarget.GENERIC, ["_headers"])
        assert "None (uncompressed build)" in text

    def test_product_name(self) -> None:
        text = render_readme(NONE, HostTarget.NGINX, [], product_name="Acme Preflight")
        assert "Generated by Acme Preflight" in text


class TestGenerateFixPack:
    @pytest.mark.parametrize(
        ("host", "expected"),
        [
            (HostTarget.VERCEL, ["vercel.json", "README.md"]),
            (HostTarget.NETLIFY, ["_headers", "README.md"]),
            (HostTarget.NGINX, ["nginx.conf", "README.md"]),
            (HostTarget.APACHE, [".htaccess", "README.md"]),
            (HostTarget.GENERIC, ["_headers", ".htaccess", "README.md"]),
        ],
    )
    def test_files_per_host(self, host: HostTarget, expected: list[str]) -> None:
        pack = generate_fix_pack(BROTLI, host)
        assert pack.host == host
        assert pack.file_names() == expected

    def test_deterministic(self) -> None:
        assert generate_fix_pack(BOTH, HostTarget.NGINX) == generate_fix_pack(BOTH, HostTarget.NGINX)

    def test_host_label(self) -> None:
        assert host_label(HostTarget.GENERIC) == "Generic Web Host"


class TestBuildFixPackZip:
    def test_files_under_folder(self) -> None:
        pack = generate_fix_pack(GZIP, HostTarget.GENERIC)
        data = build_fix_pack_zip(pack)
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            names = archive.namelist()
            readme = archive.read(f"{FIX_PACK_FOLDER}/README.md").decode("utf-8")
        assert names == [
            f"{FIX_PACK_FOLDER}/_headers",
            f"{FIX_PACK_FOLDER}/.htaccess",
            f"{FIX_PACK_FOLDER}/README.md",
        ]
        assert readme == pack.files[-1].content
