"""Reduce a generic syntax tree to its imports, functions and classes."""

from __future__ import annotations

from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..logging import get_logger
from ..models import ClassEntry, CondensedAst, FunctionEntry, GenericAstNode, ImportEntry

logger = get_logger("condenser")

Entry = Union[ImportEntry, FunctionEntry, ClassEntry]
# None means the rule does not apply to this node; an empty list means it
# applied but found nothing usable.
Rule = Callable[[GenericAstNode], Optional[List[Entry]]]

EXCLUDED_PARAMETERS = frozenset({"self", "cls", "this"})
OPAQUE_NODE_TYPES = frozenset({"decorator", "comment", "line_comment", "block_comment"})
FUNCTION_VALUE_TYPES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function", "generator_function_expression"}
)
_QUOTES = ("'", '"', "`")


def _dequote(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] in _QUOTES and text[-1] == text[0]:
        return text[1:-1]
    return text


def _field_text(node: GenericAstNode, field: str) -> str:
    child = node.child_by_field(field)
    return child.text.strip() if child is not None else ""


# Parameters


def _parameter_name(node: GenericAstNode) -> Optional[str]:
    current: Optional[GenericAstNode] = node
    # Unwrap nested parameter wrappers until a leaf shape is reached.
    while current is not None:
        kind = current.type
        if kind in {"identifier", "shorthand_property_identifier_pattern", "this"}:
            return current.text
        if kind in {
            "rest_pattern",
            "list_splat_pattern",
            "dictionary_splat_pattern",
            "object_pattern",
            "array_pattern",
            "tuple_pattern",
        }:
            return " ".join(current.text.split())
        if kind in {"required_parameter", "optional_parameter"}:
            current = current.child_by_field("pattern")
        elif kind == "assignment_pattern":
            current = current.child_by_field("left")
        elif kind in {"default_parameter", "typed_default_parameter", "formal_parameter"}:
            current = current.child_by_field("name")
        elif kind == "typed_parameter":
            current = next(
                (
                    child
                    for child in current.named_children
                    if child.type in {"identifier", "list_splat_pattern", "dictionary_splat_pattern"}
                ),
                None,
            )
        elif kind == "spread_parameter":
            declarator = next((c for c in current.named_children if c.type == "variable_declarator"), None)
            name = _field_text(declarator, "name") if declarator is not None else ""
            return f"...{name}" if name else None
        else:
            return None
    return None


def _parameters(owner: GenericAstNode) -> List[str]:
    params_node = owner.child_by_field("parameters")
    candidates: Sequence[GenericAstNode]
    if params_node is not None:
        candidates = params_node.named_children
    else:
        single = owner.child_by_field("parameter")
        candidates = [single] if single is not None else []

    names: List[str] = []
    for candidate in candidates:
        name = _parameter_name(candidate)
        if name and name not in EXCLUDED_PARAMETERS:
            names.append(name)
    return names


# Rules


def _source_import(node: GenericAstNode) -> Optional[List[Entry]]:
    source = node.child_by_field("source")
    if source is None:
        # ``export`` without ``from``, or a Python import sharing the node type
        return None
    text = _dequote(source.text)
    return [ImportEntry(source=text)] if text else []


def _python_import(node: GenericAstNode) -> Optional[List[Entry]]:
    names = node.children_by_field("name")
    if not names:
        return None
    entries: List[Entry] = []
    for name in names:
        target = name.child_by_field("name") if name.type == "aliased_import" else name
        if target is not None and target.text.strip():
            entries.append(ImportEntry(source=target.text.strip()))
    return entries


def _python_from_import(node: GenericAstNode) -> Optional[List[Entry]]:
    module = _field_text(node, "module_name")
    return [ImportEntry(source=module)] if module else []


def _java_import(node: GenericAstNode) -> Optional[List[Entry]]:
    target = next((c for c in node.named_children if c.type in {"scoped_identifier", "identifier"}), None)
    if target is None:
        return []
    source = target.text.strip()
    if any(child.type == "asterisk" for child in node.children):
        source = f"{source}.*"
    return [ImportEntry(source=source)]


def _named_function(node: GenericAstNode) -> Optional[List[Entry]]:
    name = _field_text(node, "name")
    if not name:
        return []
    return [FunctionEntry(name=name, params=_parameters(node))]


def _bound_function(node: GenericAstNode) -> Optional[List[Entry]]:
    value = node.child_by_field("value")
    if value is None or value.type not in FUNCTION_VALUE_TYPES:
        return None
    name = _field_text(node, "name")
    if not name:
        return []
    return [FunctionEntry(name=name, params=_parameters(value))]


def _named_class(node: GenericAstNode) -> Optional[List[Entry]]:
    name = _field_text(node, "name")
    if not name:
        # anonymous class expression
        return None if node.type == "class" else []
    return [ClassEntry(name=name)]


ConstructTable = Mapping[str, Tuple[Rule, ...]]

_ECMASCRIPT_TABLE: Dict[str, Tuple[Rule, ...]] = {
    "import_statement": (_source_import,),
    "export_statement": (_source_import,),
    "function_declaration": (_named_function,),
    "generator_function_declaration": (_named_function,),
    "function_signature": (_named_function,),
    "method_definition": (_named_function,),
    "variable_declarator": (_bound_function,),
    "class_declaration": (_named_class,),
    "abstract_class_declaration": (_named_class,),
    "class": (_named_class,),
}

_PYTHON_TABLE: Dict[str, Tuple[Rule, ...]] = {
    "import_statement": (_python_import,),
    "import_from_statement": (_python_from_import,),
    "function_definition": (_named_function,),
    "class_definition": (_named_class,),
}

_JAVA_TABLE: Dict[str, Tuple[Rule, ...]] = {
    "import_declaration": (_java_import,),
    "method_declaration": (_named_function,),
    "constructor_declaration": (_named_function,),
    "class_declaration": (_named_class,),
}

CONSTRUCT_TABLES: Dict[str, ConstructTable] = {
    "javascript": _ECMASCRIPT_TABLE,
    "typescript": _ECMASCRIPT_TABLE,
    "tsx": _ECMASCRIPT_TABLE,
    "python": _PYTHON_TABLE,
    "java": _JAVA_TABLE,
}


def _union_table() -> Dict[str, Tuple[Rule, ...]]:
    merged: Dict[str, Tuple[Rule, ...]] = {}
    for table in (_ECMASCRIPT_TABLE, _PYTHON_TABLE, _JAVA_TABLE):
        for node_type, rules in table.items():
            existing = merged.get(node_type, ())
            merged[node_type] = existing + tuple(rule for rule in rules if rule not in existing)
    return merged


UNION_TABLE: ConstructTable = _union_table()


def _apply(rules: Tuple[Rule, ...], node: GenericAstNode) -> Optional[List[Entry]]:
    for rule in rules:
        result = rule(node)
        if result is not None:
            return result
    return None


def condense(root: GenericAstNode, language: Optional[str] = None) -> CondensedAst:
    """Collect imports, functions and classes in one pre-order walk of ``root``.

    With ``language`` only that language's construct table applies; otherwise
    the union of every table is used.
    """
    table = CONSTRUCT_TABLES.get(language, UNION_TABLE) if language else UNION_TABLE
    condensed = CondensedAst()
    stack: List[GenericAstNode] = [root]
    while stack:
        node = stack.pop()
        if node.type in OPAQUE_NODE_TYPES:
            continue

        rules = table.get(node.type)
        if rules:
            entries = _apply(rules, node)
            if entries is not None and not entries:
                logger.debug(
                    "Skipped %s at %d:%d: no name or source",
                    node.type,
                    node.start_position.row + 1,
                    node.start_position.column,
                )
            for entry in entries or ():
                if isinstance(entry, ImportEntry):
                    condensed.imports.append(entry)
                elif isinstance(entry, FunctionEntry):
                    condensed.functions.append(entry)
                else:
                    condensed.classes.append(entry)

        stack.extend(reversed(node.children))
    return condensed


__all__ = ["CONSTRUCT_TABLES", "EXCLUDED_PARAMETERS", "UNION_TABLE", "condense"]
