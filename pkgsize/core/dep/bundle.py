"""打包累加器 - 有序、只追加的模块源码集合

追加顺序即拉取完成顺序，不保证多次运行之间稳定。
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Bundle:
    parts: list[str] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)

    def append(self, content: str, location: str) -> None:
        self.parts.append(content)
        self.locations.append(location)

    def text(self) -> str:
        return "\n".join(self.parts)

    def __len__(self) -> int:
        return len(self.parts)

    def __bool__(self) -> bool:
        return bool(self.parts)
