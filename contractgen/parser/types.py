"""AST node types for contract definitions."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Union


@dataclass
class OpaqueCode:
    """Code that is echoed back out verbatim."""
    code: str = ""
    children: list[Node] = field(default_factory=list)


@dataclass
class Block:
    """A braced statement list. Children are statement-level nodes."""
    children: list[Node] = field(default_factory=list)


@dataclass
class TypeAlias:
    type_name: str
    type_value: str
    children: list[Node] = field(default_factory=list)


@dataclass
class DataDeclare:
    """A variable declaration; the optional child is its OpaqueCode initializer."""
    var_name: str
    children: list[Node] = field(default_factory=list)


@dataclass
class AssociatedType:
    """A contract-scoped type placeholder with a default."""
    type_name: str
    default_code: str = ""
    children: list[Node] = field(default_factory=list)


@dataclass
class DataMember:
    var_type: str
    var_name: str
    default_code: str = ""
    children: list[Node] = field(default_factory=list)


@dataclass
class MethodDecl:
    return_type: str
    method_name: str
    args: str = ""
    attributes: set[str] = field(default_factory=set)  # const, noexcept, etc.
    default_code: str = ""
    is_required: bool = False
    is_default: bool = False
    children: list[Node] = field(default_factory=list)

    def attribute_string(self) -> str:
        return " ".join(sorted(self.attributes))


@dataclass
class Contract:
    """Full contract information. Children are members in declaration order."""
    name: str
    base_name: str
    children: list[Node] = field(default_factory=list)


@dataclass
class Root:
    """Parse result. Children are Contract nodes."""
    children: list[Node] = field(default_factory=list)


Node = Union[
    OpaqueCode, Block, TypeAlias, DataDeclare,
    Contract, AssociatedType, DataMember, MethodDecl, Root,
]


def to_dict(node: Node) -> dict[str, Any]:
    """Render a node and its children as JSON-ready data.

    Each dict is tagged with "node" (the variant name); sets become sorted
    lists and "children" keeps declaration order.
    """
    out: dict[str, Any] = {"node": type(node).__name__}
    for f in fields(node):
        if f.name == "children":
            continue
        value = getattr(node, f.name)
        if isinstance(value, set):
            value = sorted(value)
        out[f.name] = value
    out["children"] = [to_dict(child) for child in node.children]
    return out
