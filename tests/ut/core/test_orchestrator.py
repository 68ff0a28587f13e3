"""解析编排测试 - 去重 / 失败隔离 / 完成回调 / 运行隔离"""

from __future__ import annotations

import pytest

from pkgsize.core.dep.orchestrator import (
    ResolutionOrchestrator,
    ResolutionResult,
    build_orchestrator,
    collect,
)

pytestmark = pytest.mark.anyio


@pytest.fixture()
def orchestrator(cdn, config) -> ResolutionOrchestrator:
    return build_orchestrator(cdn.client(), config)


def _names(result: ResolutionResult) -> list[str]:
    return sorted(loc.rsplit("/", 1)[-1] for loc in result.bundle.locations)


class TestLocalGraph:
    async def test_single_module_without_deps(self, orchestrator, write_files) -> None:
        root = write_files({"index.js": "console.log(1);"})
        calls: list[ResolutionResult] = []
        orchestrator.on_complete = calls.append
        result = await orchestrator.run(str(root / "index.js"))
        assert len(result.bundle) == 1
        assert result.settled == 1
        assert result.failures == []
        assert len(calls) == 1 and calls[0].settled == 1

    async def test_fan_out_deduplicated(self, orchestrator, write_files) -> None:
        root = write_files({
            "index.js": 'require("./a"); require("./b");',
            "a.js": 'require("./b");',
            "b.js": "module.exports = 2;",
        })
        result = await orchestrator.run(str(root / "index.js"))
        assert _names(result) == ["a.js", "b.js", "index.js"]
        # index、a、b 以及 a 里再次出现的 b
        assert result.settled == 4

    async def test_suffix_variants_share_one_location(self, orchestrator, write_files) -> None:
        root = write_files({
            "index.js": 'require("./b"); require("./b.js");',
            "b.js": "module.exports = 2;",
        })
        result = await orchestrator.run(str(root / "index.js"))
        assert _names(result) == ["b.js", "index.js"]

    async def test_cycle_terminates(self, orchestrator, write_files) -> None:
        root = write_files({
            "index.js": 'require("./a");',
            "a.js": 'require("./index");',
        })
        result = await orchestrator.run(str(root / "index.js"))
        assert _names(result) == ["a.js", "index.js"]

    async def test_dev_branch_never_bundled(self, orchestrator, write_files) -> None:
        root = write_files({
            "index.js": """
                if (process.env.NODE_ENV !== "production") { require("./dev") }
                else { require("./prod") }
            """,
            "dev.js": "dev",
            "prod.js": "module.exports = 'prod';",
        })
        result = await orchestrator.run(str(root / "index.js"))
        assert _names(result) == ["index.js", "prod.js"]

    async def test_builtins_ignored(self, orchestrator, write_files, cdn) -> None:
        root = write_files({"index.js": 'require("fs"); require("node:path");'})
        result = await orchestrator.run(str(root / "index.js"))
        assert len(result.bundle) == 1
        assert result.failures == []
        assert result.settled == 3
        assert cdn.requests == []

    async def test_builtin_subpaths_ignored(self, orchestrator, write_files, cdn) -> None:
        root = write_files({"index.js": 'require("fs/promises"); require("stream/web"); import "util/types";'})
        result = await orchestrator.run(str(root / "index.js"))
        assert len(result.bundle) == 1
        assert result.failures == []
        assert cdn.requests == []

    async def test_nameless_scope_is_not_a_failure(self, orchestrator, write_files, cdn) -> None:
        root = write_files({"index.js": 'require("@scope"); require("./ok");', "ok.js": "ok"})
        result = await orchestrator.run(str(root / "index.js"))
        assert _names(result) == ["index.js", "ok.js"]
        assert result.failures == []
        assert result.settled == 3
        assert cdn.requests == []

    async def test_missing_sibling_does_not_stop_others(self, orchestrator, write_files) -> None:
        root = write_files({
            "index.js": 'require("./missing"); require("./ok");',
            "ok.js": "ok",
        })
        result = await orchestrator.run(str(root / "index.js"))
        assert _names(result) == ["index.js", "ok.js"]
        assert [(f.specifier, f.code) for f in result.failures] == [("./missing", "FETCH_NOT_FOUND")]

    async def test_parse_failure_bundled_but_not_expanded(self, orchestrator, write_files) -> None:
        root = write_files({
            "index.js": 'require("./broken");',
            "broken.js": 'require("./never"); function (',
            "never.js": "never",
        })
        result = await orchestrator.run(str(root / "index.js"))
        assert _names(result) == ["broken.js", "index.js"]
        assert [f.code for f in result.failures] == ["PARSE_FAILED"]

    async def test_missing_entry_yields_empty_bundle(self, orchestrator, tmp_path) -> None:
        result = await orchestrator.run(str(tmp_path / "nope.js"))
        assert len(result.bundle) == 0
        assert result.failures[0].code == "FETCH_NOT_FOUND"
        assert result.settled == 1


class TestRemoteGraph:
    async def test_package_graph(self, orchestrator, cdn) -> None:
        cdn.add_manifest("mini", {"name": "mini", "version": "1.0.0", "main": "lib/index.js"})
        cdn.add("https://cdn.test/npm/mini@1.0.0/lib/index.js", 'require("./util"); require("dep");')
        cdn.add("https://cdn.test/npm/mini@1.0.0/lib/util.js", "util")
        cdn.add_manifest("dep", {"name": "dep", "version": "3.1.0", "exports": {".": {"require": "./cjs.js"}}})
        cdn.add("https://cdn.test/npm/dep@3.1.0/cjs.js", "dep")

        result = await orchestrator.run("mini")
        assert sorted(result.bundle.locations) == [
            "https://cdn.test/npm/dep@3.1.0/cjs.js",
            "https://cdn.test/npm/mini@1.0.0/lib/index.js",
            "https://cdn.test/npm/mini@1.0.0/lib/util.js",
        ]
        assert result.failures == []

    async def test_shared_dependency_fetched_once(self, orchestrator, cdn) -> None:
        base = "https://cdn.test/npm/app@1.0.0/"
        cdn.add(f"{base}index.js", 'import "./a.js"; import "./b.js";')
        cdn.add(f"{base}a.js", 'import "./shared.js";')
        cdn.add(f"{base}b.js", 'import "./shared.js";')
        cdn.add(f"{base}shared.js", "export default 1;")

        result = await orchestrator.run(f"{base}index.js")
        assert len(result.bundle) == 4
        assert cdn.requests.count(f"{base}shared.js") == 1

    async def test_redirect_aliases_deduplicated(self, orchestrator, cdn) -> None:
        entry = "https://cdn.test/npm/app@1.0.0/index.js"
        cdn.add(entry, """
            require("https://cdn.test/npm/p/index.js");
            require("https://cdn.test/npm/p@1.2.3/index.js");
        """)
        cdn.redirect("https://cdn.test/npm/p/index.js", "https://cdn.test/npm/p@1.2.3/index.js")
        cdn.add("https://cdn.test/npm/p@1.2.3/index.js", "p")

        result = await orchestrator.run(entry)
        assert sorted(result.bundle.locations) == [entry, "https://cdn.test/npm/p@1.2.3/index.js"]
        assert result.failures == []

    async def test_manifest_shared_across_subpaths(self, orchestrator, cdn) -> None:
        cdn.add_manifest("lib", {"name": "lib", "version": "1.0.0"})
        cdn.add("https://cdn.test/npm/app/index.js", 'require("lib/a"); require("lib/b");')
        cdn.add("https://cdn.test/npm/lib@1.0.0/a.js", "a")
        cdn.add("https://cdn.test/npm/lib@1.0.0/b.js", "b")

        result = await orchestrator.run("https://cdn.test/npm/app/index.js")
        assert len(result.bundle) == 3
        assert cdn.requests.count("https://cdn.test/npm/lib/package.json") == 1


class TestLifecycle:
    async def test_completion_fires_once(self, cdn, config, write_files) -> None:
        root = write_files({
            "index.js": 'require("./a"); require("./b"); require("./gone");',
            "a.js": 'require("./b");',
            "b.js": "b",
        })
        calls: list[ResolutionResult] = []
        orchestrator = build_orchestrator(cdn.client(), config)
        orchestrator.on_complete = calls.append

        result = await orchestrator.run(str(root / "index.js"))
        assert len(calls) == 1
        assert calls[0].settled == result.settled == 5
        assert len(calls[0].bundle) == 3

    async def test_repeated_runs_are_independent(self, orchestrator, write_files) -> None:
        root = write_files({"index.js": 'require("./a");', "a.js": "a"})
        first = await orchestrator.run(str(root / "index.js"))
        second = await orchestrator.run(str(root / "index.js"))
        assert len(first.bundle) == len(second.bundle) == 2
        assert first.bundle is not second.bundle

    async def test_unexpected_error_isolated(self, orchestrator, write_files) -> None:
        root = write_files({"index.js": 'require("./boom"); require("./ok");', "ok.js": "ok"})
        real_resolve = orchestrator.resolver.resolve

        async def resolve(specifier, base=None):
            if specifier == "./boom":
                raise RuntimeError("kaboom")
            return await real_resolve(specifier, base)

        orchestrator.resolver.resolve = resolve
        result = await orchestrator.run(str(root / "index.js"))
        assert _names(result) == ["index.js", "ok.js"]
        assert [(f.specifier, f.code) for f in result.failures] == [("./boom", "UNEXPECTED")]

    async def test_collect_uses_fresh_client(self, cdn, config) -> None:
        cdn.add_manifest("solo", {"name": "solo", "version": "0.1.0"})
        cdn.add("https://cdn.test/npm/solo@0.1.0/index.js", "solo")
        first = await collect("solo", config, transport=cdn.transport)
        second = await collect("solo", config, transport=cdn.transport)
        assert first.bundle.locations == second.bundle.locations == ["https://cdn.test/npm/solo@0.1.0/index.js"]
        # 每次调用的清单缓存互不共享
        assert cdn.requests.count("https://cdn.test/npm/solo/package.json") == 2
