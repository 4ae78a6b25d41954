"""JSON serialization/deserialization for the minic AST.

This module converts between AST dataclasses and plain Python dict/list
structures suitable for JSON encoding, so a parsed program can be stored
and executed later without the front end. It supports a full round-trip
for all node types and `TypeSpec`.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict

from . import ast as nodes
from .types import TypeSpec


NODE_TYPES: Dict[str, type] = {
    cls.__name__: cls
    for cls in (
        nodes.Program, nodes.FuncDecl, nodes.FuncParam, nodes.Block,
        nodes.VarDecl, nodes.Assign, nodes.ReturnStmt, nodes.IfStmt,
        nodes.WhileStmt, nodes.ForStmt, nodes.BreakStmt, nodes.ContinueStmt,
        nodes.ExprStmt, nodes.Const, nodes.Ident, nodes.BinaryOp,
        nodes.UnaryOp, nodes.Index, nodes.Call, nodes.ArrayInit,
    )
}


def typespec_to_obj(t: TypeSpec) -> Dict[str, Any]:
    obj: Dict[str, Any] = {"kind": t.kind, "args": [typespec_to_obj(a) for a in t.args]}
    if t.kind == 'array':
        obj["length"] = t.length
    return obj


def typespec_from_obj(o: Dict[str, Any]) -> TypeSpec:
    return TypeSpec(
        o["kind"],
        tuple(typespec_from_obj(x) for x in o.get("args", [])),
        o.get("length", 0),
    )


def ast_to_obj(node: Any) -> Any:
    # Primitives
    if node is None or isinstance(node, (int, float, str, bool)):
        return node
    if isinstance(node, list):
        return [ast_to_obj(n) for n in node]
    if isinstance(node, TypeSpec):
        return {"__type__": "TypeSpec", "value": typespec_to_obj(node)}
    name = type(node).__name__
    if name not in NODE_TYPES:
        raise TypeError(f"Unsupported node for serialization: {name}")
    obj: Dict[str, Any] = {"type": name}
    for f in fields(node):
        obj[f.name] = ast_to_obj(getattr(node, f.name))
    return obj


def ast_from_obj(obj: Any) -> Any:
    if obj is None or isinstance(obj, (int, float, str, bool)):
        return obj
    if isinstance(obj, list):
        return [ast_from_obj(o) for o in obj]
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    if obj.get("__type__") == "TypeSpec":
        return typespec_from_obj(obj["value"])
    t = obj.get("type")
    if t not in NODE_TYPES:
        raise ValueError(f"Unknown AST node type: {t}")
    cls = NODE_TYPES[t]
    kwargs = {f.name: ast_from_obj(obj.get(f.name)) for f in fields(cls)}
    return cls(**kwargs)
