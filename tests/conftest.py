"""共享 fixture — 假 CDN（httpx.MockTransport）+ anyio 后端"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from pkgsize.core.config import Config

CDN = "https://cdn.test/npm/"


class FakeCDN:
    """按完整 URL 应答的内存 CDN，记录全部请求"""

    base = CDN

    def __init__(self) -> None:
        self.files: dict[str, str] = {}
        self.redirects: dict[str, str] = {}
        self.broken: set[str] = set()
        self.requests: list[str] = []

    def add(self, url: str, body: str) -> None:
        self.files[url] = body

    def add_manifest(self, package: str, data: dict) -> None:
        self.files[f"{CDN}{package}/package.json"] = json.dumps(data)

    def redirect(self, src: str, dst: str) -> None:
        self.redirects[src] = dst

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url in self.broken:
            raise httpx.ConnectError("connection refused", request=request)
        if url in self.redirects:
            return httpx.Response(302, headers={"Location": self.redirects[url]})
        if url in self.files:
            return httpx.Response(200, text=self.files[url])
        return httpx.Response(404, text="not found")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, follow_redirects=True)


@pytest.fixture()
def cdn() -> FakeCDN:
    return FakeCDN()


@pytest.fixture()
def config() -> Config:
    return Config(cdn_base=CDN)


@pytest.fixture()
def write_files(tmp_path: Path):
    """写入 {相对路径: 内容} 形式的文件树，返回根目录"""

    def _write(files: dict[str, str]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture()
def anyio_backend() -> str:
    """异步测试只跑 asyncio 后端"""
    return "asyncio"
