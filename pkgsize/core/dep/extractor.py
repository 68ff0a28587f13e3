"""依赖提取器 + 环境分支裁剪

基于 tree-sitter JavaScript 语法树做一次深度优先遍历，收集:
- import 声明 / export ... from 再导出
- 动态 import("x")
- 调用者字面上为 require 的调用 require("x")

进入 if 语句或三元表达式之前，识别
    process.env.NODE_ENV <op> "<literal>"    (op ∈ ===, ==, !==, !=)
并按 "production" 判定分支：确定为真只走 consequence，确定为假只走
alternative，其余情况两侧都走（保守的过近似）。只做这一种模式匹配，
不做常量折叠。

遍历用显式栈，压缩后的深层嵌套代码不会触发递归上限。
"""

from __future__ import annotations

import codecs
import logging
import re
from typing import Callable, Iterable, Iterator

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser, Tree

from pkgsize.core.exceptions import ParseFailedError

logger = logging.getLogger(__name__)

PRODUCTION = "production"

_EQ_OPS = frozenset(("===", "=="))
_NEQ_OPS = frozenset(("!==", "!="))

_BRACED_UNICODE_RE = re.compile(r"\\u\{([0-9a-fA-F]+)\}")

JS_LANGUAGE = Language(tree_sitter_javascript.language())


def parse_module(source: str) -> Tree:
    """解析源码；语法树含错误节点时抛 ParseFailedError"""
    tree = Parser(JS_LANGUAGE).parse(source.encode("utf-8"))
    if tree.root_node.has_error:
        raise ParseFailedError(f"语法错误: 第 {_first_error_line(tree.root_node)} 行附近")
    return tree


def _first_error_line(root: Node) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        stack.extend(c for c in reversed(node.children) if c.has_error or c.is_missing)
    return root.start_point[0] + 1


# =========================================================================
# 字面量 / 表达式识别
# =========================================================================


def string_value(node: Node | None) -> str | None:
    """字符串字面量的值；非字符串字面量返回 None"""
    if node is None or node.type != "string":
        return None
    parts = []
    for child in node.named_children:
        text = child.text.decode("utf-8")
        if child.type == "escape_sequence":
            text = _decode_escape(text)
        parts.append(text)
    return "".join(parts)


def _decode_escape(text: str) -> str:
    braced = _BRACED_UNICODE_RE.fullmatch(text)
    if braced is not None:
        code_point = int(braced.group(1), 16)
        return chr(code_point) if code_point <= 0x10FFFF else text[1:]
    try:
        return codecs.decode(text, "unicode_escape")
    except UnicodeDecodeError:
        return text[1:]


def _unwrap(node: Node | None) -> Node | None:
    while node is not None and node.type == "parenthesized_expression":
        node = node.named_children[0] if node.named_children else None
    return node


def _property_name(node: Node) -> str | None:
    """member 表达式的属性名，支持 a.b 与 a["b"] 两种写法"""
    if node.type == "member_expression":
        prop = node.child_by_field_name("property")
        return prop.text.decode("utf-8") if prop is not None else None
    if node.type == "subscript_expression":
        return string_value(_unwrap(node.child_by_field_name("index")))
    return None


def is_process_env_node_env(node: Node | None) -> bool:
    node = _unwrap(node)
    if node is None or _property_name(node) != "NODE_ENV":
        return False
    env = _unwrap(node.child_by_field_name("object"))
    if env is None or _property_name(env) != "env":
        return False
    root = _unwrap(env.child_by_field_name("object"))
    return root is not None and root.type == "identifier" and root.text == b"process"


def evaluate_env_condition(node: Node | None) -> bool | None:
    """判定 NODE_ENV 比较在生产构建下的真假；无法判定返回 None"""
    node = _unwrap(node)
    if node is None or node.type != "binary_expression":
        return None
    operator = node.child_by_field_name("operator")
    if operator is None:
        return None
    op = operator.type
    left = node.child_by_field_name("left")
    right = node.child_by_field_name("right")

    literal = None
    if is_process_env_node_env(left):
        literal = string_value(_unwrap(right))
    elif is_process_env_node_env(right):
        literal = string_value(_unwrap(left))
    if literal is None:
        return None

    if op in _EQ_OPS:
        return literal == PRODUCTION
    if op in _NEQ_OPS:
        return literal != PRODUCTION
    return None


# =========================================================================
# 遍历
# =========================================================================


class DependencyExtractor:
    """依赖说明符提取器

    每种关心的节点类型对应一个 _visit_<type> 方法：记录依赖并返回需要继续
    遍历的子节点；其余节点类型遍历全部具名子节点。
    """

    def __init__(self) -> None:
        self._dispatch: dict[str, Callable[[Node, set[str]], Iterable[Node]]] = {
            "if_statement": self._visit_if_statement,
            "ternary_expression": self._visit_ternary_expression,
            "import_statement": self._visit_source_statement,
            "export_statement": self._visit_source_statement,
            "call_expression": self._visit_call_expression,
        }

    def extract(self, tree: Tree) -> set[str]:
        deps: set[str] = set()
        stack: list[Node] = [tree.root_node]
        while stack:
            node = stack.pop()
            visit = self._dispatch.get(node.type, self._visit_generic)
            children = list(visit(node, deps))
            stack.extend(reversed(children))
        return deps

    def extract_source(self, source: str) -> set[str]:
        """解析并提取；语法错误时抛 ParseFailedError"""
        return self.extract(parse_module(source))

    @staticmethod
    def _visit_generic(node: Node, deps: set[str]) -> Iterable[Node]:
        return node.named_children

    def _visit_if_statement(self, node: Node, deps: set[str]) -> Iterable[Node]:
        return self._branches(
            node,
            node.child_by_field_name("consequence"),
            node.child_by_field_name("alternative"),
        )

    def _visit_ternary_expression(self, node: Node, deps: set[str]) -> Iterable[Node]:
        return self._branches(
            node,
            node.child_by_field_name("consequence"),
            node.child_by_field_name("alternative"),
        )

    @staticmethod
    def _branches(node: Node, consequence: Node | None, alternative: Node | None) -> Iterator[Node]:
        verdict = evaluate_env_condition(node.child_by_field_name("condition"))
        if verdict is True:
            if consequence is not None:
                yield consequence
        elif verdict is False:
            if alternative is not None:
                yield alternative
        else:
            yield from node.named_children

    @staticmethod
    def _visit_source_statement(node: Node, deps: set[str]) -> Iterable[Node]:
        source = node.child_by_field_name("source")
        if source is None:
            # 旧版语法把 source 放在 from_clause 子节点中
            for child in node.named_children:
                if child.type == "from_clause":
                    source = child.child_by_field_name("source")
        value = string_value(source)
        if value:
            deps.add(value)
        return node.named_children

    @staticmethod
    def _visit_call_expression(node: Node, deps: set[str]) -> Iterable[Node]:
        callee = node.child_by_field_name("function")
        args = node.child_by_field_name("arguments")
        if callee is not None and args is not None and args.type == "arguments":
            is_require = callee.type == "identifier" and callee.text == b"require"
            if is_require or callee.type == "import":
                first = args.named_children[0] if args.named_children else None
                value = string_value(first)
                if value:
                    deps.add(value)
        return node.named_children
