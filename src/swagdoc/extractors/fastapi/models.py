from __future__ import annotations

import ast
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from swagdoc.domain.models import Model, ModelProperty

logger = logging.getLogger(__name__)

MODEL_ROOTS = frozenset({"BaseModel", "pydantic.BaseModel", "SQLModel"})

_SCALARS = {
    "str": "string",
    "int": "integer",
    "float": "number",
    "Decimal": "number",
    "bool": "boolean",
    "bytes": "string",
    "datetime": "string",
    "date": "string",
    "UUID": "string",
    "EmailStr": "string",
    "HttpUrl": "string",
    "Any": "object",
    "dict": "object",
    "Dict": "object",
}
_ARRAYS = ("list", "List", "set", "Set", "tuple", "Tuple", "Sequence")
_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class FieldDecl:
    name: str
    annotation: str
    required: bool
    description: str = ""


@dataclass(frozen=True)
class ClassDecl:
    name: str
    bases: tuple[str, ...]
    fields: tuple[FieldDecl, ...]
    docstring: str = ""
    file_path: str = ""
    line: int = 0


def extract_classes_from_source(source: str) -> list[ClassDecl]:
    """
    Collect top-level and nested class declarations with their annotated fields.
    Whether a class is a model is decided later, across files, by resolve_models.
    """
    try:
        tree = ast.parse(source)
    except SyntaxError as exc:
        logger.debug("Unparseable source skipped: %s", exc)
        return []

    out: list[ClassDecl] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.ClassDef):
            continue
        fields = []
        for stmt in node.body:
            if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                if stmt.target.id.startswith("_") or stmt.target.id == "model_config":
                    continue
                fields.append(_field_decl(stmt))
        out.append(
            ClassDecl(
                name=node.name,
                bases=tuple(ast.unparse(b) for b in node.bases),
                fields=tuple(fields),
                docstring=(ast.get_docstring(node) or "").strip(),
                line=node.lineno,
            )
        )
    return out


def extract_classes_from_file(path: Path, max_bytes: int = 500_000) -> list[ClassDecl]:
    try:
        source = path.read_bytes()[:max_bytes].decode("utf-8", errors="ignore")
    except OSError as exc:
        logger.debug("Could not read %s: %s", path, exc)
        return []
    abs_path = str(path.resolve())
    return [
        ClassDecl(c.name, c.bases, c.fields, c.docstring, abs_path, c.line)
        for c in extract_classes_from_source(source)
    ]


def resolve_models(classes: Iterable[ClassDecl]) -> dict[str, Model]:
    """
    Keep classes that derive (directly or through other collected classes) from
    a pydantic root, and turn them into Model values keyed by class name.
    Inherited fields come first; a subclass redeclaring a field overrides it.
    First declaration wins when two files define the same class name.
    """
    by_name: dict[str, ClassDecl] = {}
    for c in classes:
        by_name.setdefault(c.name, c)

    model_names: set[str] = set()
    changed = True
    while changed:
        changed = False
        for c in by_name.values():
            if c.name in model_names:
                continue
            heads = {_base_name(b) for b in c.bases}
            if heads & MODEL_ROOTS or heads & model_names:
                model_names.add(c.name)
                changed = True

    models: dict[str, Model] = {}
    for name in sorted(model_names):
        c = by_name[name]
        fields = _collect_fields(c, by_name, model_names, seen=set())
        models[name] = Model(
            id=name,
            name=name,
            qualified_type=_qualified(c),
            properties=tuple(
                ModelProperty(
                    name=f.name,
                    type=swagger_type(f.annotation),
                    required=f.required,
                    description=f.description,
                    items=swagger_items(f.annotation),
                )
                for f in fields
            ),
            description=c.docstring,
        )
    return models


def referenced_names(annotation: str) -> set[str]:
    return set(_IDENT.findall(annotation or ""))


def swagger_type(annotation: str) -> str:
    """
    Map an annotation to a swagger 1.2 type name; model references keep their class name.
    Optional[X], Union[X, None] and X | None map like X.
    """
    text = annotation.strip().replace("typing.", "")
    arms = _union_arms(text)
    if arms is not None:
        rest = [a for a in arms if a != "None"]
        return swagger_type(rest[0]) if len(rest) == 1 else "object"

    head = text.split("[", 1)[0].split(".")[-1]
    if head in _ARRAYS:
        return "array"
    if head in _SCALARS:
        return _SCALARS[head]
    if head == "Literal":
        return "string"
    return head or "object"


def swagger_items(annotation: str) -> Optional[str]:
    """Element type of a list-like annotation, None for anything else."""
    text = annotation.strip().replace("typing.", "")
    arms = _union_arms(text)
    if arms is not None:
        rest = [a for a in arms if a != "None"]
        return swagger_items(rest[0]) if len(rest) == 1 else None
    head, sep, inner = text.partition("[")
    if not sep or head.split(".")[-1] not in _ARRAYS:
        return None
    first = _split_top(inner[:-1], ",")[0]
    return swagger_type(first) if first else None


def _split_top(text: str, sep: str) -> list[str]:
    # split on sep outside of brackets
    parts: list[str] = []
    depth = start = 0
    for i, ch in enumerate(text):
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        elif ch == sep and depth == 0:
            parts.append(text[start:i].strip())
            start = i + 1
    parts.append(text[start:].strip())
    return parts


def _union_arms(text: str) -> Optional[list[str]]:
    """Members of X | Y, Union[X, Y] or Optional[X] (with None); None when text is not a union."""
    arms = _split_top(text, "|")
    if len(arms) > 1:
        return arms
    m = re.fullmatch(r"(Optional|Union)\[(.*)\]", text)
    if not m:
        return None
    arms = _split_top(m.group(2), ",")
    return arms + ["None"] if m.group(1) == "Optional" else arms


def _field_decl(stmt: ast.AnnAssign) -> FieldDecl:
    annotation = ast.unparse(stmt.annotation)
    optional = _is_optional(annotation)
    description = ""

    value = stmt.value
    if value is None:
        required = not optional
    elif isinstance(value, ast.Call) and _call_name(value) in ("Field", "pydantic.Field"):
        has_default = any(kw.arg in ("default", "default_factory") for kw in value.keywords)
        first = value.args[0] if value.args else None
        if first is not None:
            has_default = not (isinstance(first, ast.Constant) and first.value is Ellipsis)
        required = not has_default and not optional
        for kw in value.keywords:
            if kw.arg == "description" and isinstance(kw.value, ast.Constant) and isinstance(kw.value.value, str):
                description = kw.value.value
    else:
        required = isinstance(value, ast.Constant) and value.value is Ellipsis

    return FieldDecl(stmt.target.id, annotation, required, description)  # type: ignore[attr-defined]


def _is_optional(annotation: str) -> bool:
    arms = _union_arms(annotation.strip().replace("typing.", ""))
    return arms is not None and "None" in arms


def _call_name(call: ast.Call) -> str:
    return ast.unparse(call.func)


def _base_name(base: str) -> str:
    # Generic[T] style bases: keep the head
    return base.split("[", 1)[0].split(".")[-1]


def _qualified(c: ClassDecl) -> str:
    if not c.file_path:
        return c.name
    return f"{Path(c.file_path).stem}.{c.name}"


def _collect_fields(
    c: ClassDecl,
    by_name: dict[str, ClassDecl],
    model_names: set[str],
    seen: set[str],
) -> list[FieldDecl]:
    if c.name in seen:
        return []
    seen.add(c.name)

    merged: dict[str, FieldDecl] = {}
    for b in c.bases:
        parent: Optional[ClassDecl] = by_name.get(_base_name(b))
        if parent is not None and parent.name in model_names:
            for f in _collect_fields(parent, by_name, model_names, seen):
                merged[f.name] = f
    for f in c.fields:
        merged[f.name] = f
    return list(merged.values())
