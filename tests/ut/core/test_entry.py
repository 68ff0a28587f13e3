"""入口检测测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from pkgsize.core.entry import detect_entry, is_local_target, read_local_manifest
from pkgsize.core.exceptions import FetchNotFoundError, ValidationError

SUFFIXES = ["", ".js", ".mjs", ".cjs", ".ts", "/index.js"]


class TestIsLocalTarget:
    @pytest.mark.parametrize(("target", "expected"), [
        ("./pkg", True),
        ("../pkg", True),
        ("/abs/pkg", True),
        ("~/pkg", True),
        ("react", False),
        ("@scope/pkg", False),
        ("https://esm.sh/react", False),
    ])
    def test_prefix(self, target: str, expected: bool) -> None:
        assert is_local_target(target) is expected


class TestDetectEntry:
    @pytest.mark.parametrize("target", ["react", "react@18/jsx-runtime", "https://esm.sh/react"])
    def test_non_local_passthrough(self, target: str) -> None:
        assert detect_entry(target, SUFFIXES) == target

    def test_file(self, write_files) -> None:
        root = write_files({"src/main.js": "x"})
        assert detect_entry(str(root / "src" / "main.js"), SUFFIXES) == str((root / "src" / "main.js").resolve())

    def test_missing_path_left_for_fetcher(self, tmp_path: Path) -> None:
        target = str(tmp_path / "src" / "index")
        assert detect_entry(target, SUFFIXES) == str(Path(target).resolve())

    def test_directory_uses_manifest_main(self, write_files) -> None:
        root = write_files({
            "package.json": '{"name": "demo", "main": "lib/entry"}',
            "lib/entry.js": "x",
        })
        assert detect_entry(str(root), SUFFIXES) == str((root / "lib" / "entry.js").resolve())

    def test_directory_exports_before_main(self, write_files) -> None:
        root = write_files({
            "package.json": '{"exports": {".": {"require": "./dist/cjs.js"}}, "main": "main.js"}',
            "dist/cjs.js": "x",
            "main.js": "y",
        })
        assert detect_entry(str(root), SUFFIXES).endswith("cjs.js")

    def test_directory_without_manifest(self, write_files) -> None:
        root = write_files({"index.js": "x"})
        assert detect_entry(str(root), SUFFIXES) == str((root / "index.js").resolve())

    def test_directory_without_entry(self, write_files) -> None:
        root = write_files({"package.json": '{"main": "gone.js"}'})
        with pytest.raises(FetchNotFoundError):
            detect_entry(str(root), SUFFIXES)


class TestReadLocalManifest:
    def test_invalid_json(self, write_files) -> None:
        root = write_files({"package.json": "{oops"})
        with pytest.raises(ValidationError, match="不是合法 JSON"):
            read_local_manifest(root)

    def test_non_utf8(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_bytes(b'{"name": "\xff\xfe"}')
        with pytest.raises(ValidationError, match="无法读取"):
            read_local_manifest(tmp_path)

    def test_non_object(self, write_files) -> None:
        root = write_files({"package.json": "[1, 2]"})
        with pytest.raises(ValidationError, match="顶层不是对象"):
            read_local_manifest(root)

    def test_base_is_directory(self, write_files) -> None:
        root = write_files({"package.json": '{"name": "demo", "version": "1.0.0"}'})
        manifest = read_local_manifest(root)
        assert manifest.base_url == str(root)
        assert manifest.version == "1.0.0"
