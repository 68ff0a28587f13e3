"""入口检测

把命令行目标转换为编排器的入口说明符:
  - URL、包名（含版本/子路径）原样返回
  - 本地文件返回绝对路径
  - 本地目录按其 package.json 计算入口（规则与远程包解析一致）

只有以 "."、"/" 或 "~" 开头的目标才按本地路径处理，与说明符分类规则一致。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence

from pkgsize.core.dep.fetcher import find_local_file
from pkgsize.core.dep.models import PackageManifest
from pkgsize.core.dep.resolver import join_entries, package_entries
from pkgsize.core.exceptions import FetchNotFoundError, ValidationError

logger = logging.getLogger(__name__)


def is_local_target(target: str) -> bool:
    return target.startswith((".", "/", "~"))


def read_local_manifest(root: Path) -> PackageManifest:
    """读取目录下的 package.json；不存在时返回仅含默认入口的清单"""
    manifest_path = root / "package.json"
    if not manifest_path.is_file():
        return PackageManifest(name=root.name, base_url=str(root))
    try:
        text = manifest_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationError(f"package.json 无法读取: {manifest_path} ({e})") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"package.json 不是合法 JSON: {manifest_path} ({e})") from e
    if not isinstance(data, dict):
        raise ValidationError(f"package.json 顶层不是对象: {manifest_path}")
    manifest = PackageManifest.from_json(root.name, data, cdn_base="")
    manifest.base_url = str(root)
    return manifest


def detect_entry(target: str, local_suffixes: Sequence[str]) -> str:
    """返回入口说明符；本地目录找不到入口文件时抛 FetchNotFoundError"""
    if not is_local_target(target):
        return target

    path = Path(target).expanduser().resolve()
    if path.is_file():
        return str(path)
    if not path.is_dir():
        # 交给拉取器按后缀回退（如 ./src/index → ./src/index.js）
        return str(path)

    manifest = read_local_manifest(path)
    candidates = join_entries(str(path), package_entries(manifest, ""))
    for candidate in candidates:
        found = find_local_file(candidate, local_suffixes)
        if found is not None:
            logger.info("本地入口: %s -> %s", target, found)
            return str(found)
    raise FetchNotFoundError(candidates)
