# whatjsx/tasks/preprocess.py
"""
Shim-normalisering (förbehandling före JSX-rekonstruktionen).

Bundlers som rolldown lägger ut två runtime-hjälpare med minifierade namn:

    var r = ((e) => typeof require < "u" ? require : ...)(function(e) {
        throw Error('Calling `require` for "' + e + '" in an environment that doesn\\'t expose the `require` function.');
    });
    var i = (e, t) => { ...; return t && o(n, Symbol.toStringTag, { value: "Module" }), n; };
    export { i as n, r };

Passet hittar dem och döper om deklarationen (och exporterna) till
`__require` resp. `__exportAll`:

    var __require = ((e) => ...)(function __require(e) { throw Error(...) });
    var __exportAll = (e, t) => { ... };
    export { __exportAll as n, __require };

Två faser: detektering ger högst en RenameTarget per shim-typ (första träff
vinner), omskrivningen är en ren funktion av dessa. Hittas inget returneras
indata oförändrad, byte för byte.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from tree_sitter import Node

from .syntax import (
    Edit,
    SyntaxTree,
    apply_edits,
    arguments_of,
    is_identifier,
    is_member,
    iter_preorder,
    named_children,
    parse,
    string_value,
    template_value,
)

log = logging.getLogger("whatjsx/preprocess")

REQUIRE_NAME = "__require"
EXPORT_ALL_NAME = "__exportAll"

REQUIRE_MARKER = 'Calling `require` for "'
ERROR_CONSTRUCTORS = {"Error", "TypeError", "ReferenceError"}

_FUNCTION_EXPRESSIONS = {"function_expression", "function"}


@dataclass(frozen=True)
class RenameTarget:
    bound_name: str
    canonical_name: str
    name_span: Tuple[int, int]
    function_edit: Optional[Edit] = None


# ─────────────────────────── 1) Mönster ───────────────────────────

def _throws_require_error(fn: Node, tree: SyntaxTree) -> bool:
    """Innehåller funktionskroppen `throw [new] Error('Calling `require` for "' ...)`?"""
    body = fn.child_by_field_name("body")
    if body is None:
        return False
    for node in iter_preorder(body):
        if node.type != "throw_statement":
            continue
        thrown = named_children(node)
        if not thrown:
            continue
        expr = thrown[0]
        if expr.type == "call_expression":
            ctor = expr.child_by_field_name("function")
        elif expr.type == "new_expression":
            ctor = expr.child_by_field_name("constructor")
        else:
            continue
        if not (ctor is not None and ctor.type == "identifier" and tree.text(ctor) in ERROR_CONSTRUCTORS):
            continue
        args = arguments_of(expr) or []
        if args and REQUIRE_MARKER in tree.text(args[0]):
            return True
    return False


def _require_shim_function(value: Node, tree: SyntaxTree) -> Optional[Node]:
    """Initialiseraren är ett anrop vars första argument är shim-funktionen."""
    if value.type != "call_expression":
        return None
    args = arguments_of(value)
    if not args or args[0].type not in _FUNCTION_EXPRESSIONS:
        return None
    return args[0] if _throws_require_error(args[0], tree) else None


def _is_module_value(obj: Node, tree: SyntaxTree) -> bool:
    for prop in obj.named_children:
        if prop.type != "pair":
            continue
        key = prop.child_by_field_name("key")
        val = prop.child_by_field_name("value")
        if key is None or val is None:
            continue
        if key.type != "property_identifier" or tree.text(key) != "value":
            continue
        if val.type == "string" and string_value(val, tree) == "Module":
            return True
        if template_value(val, tree) == "Module":
            return True
    return False


def _tags_module(arrow: Node, tree: SyntaxTree) -> bool:
    """Anropar pilfunktionen något(x, Symbol.toStringTag, { value: "Module" })?"""
    body = arrow.child_by_field_name("body")
    if body is None:
        return False
    for node in iter_preorder(body):
        if node.type != "call_expression":
            continue
        args = arguments_of(node) or []
        if len(args) < 3:
            continue
        if not is_member(args[1], tree, "Symbol", "toStringTag"):
            continue
        if args[2].type == "object" and _is_module_value(args[2], tree):
            return True
    return False


def _function_name_edit(fn: Node, tree: SyntaxTree, canonical: str) -> Optional[Edit]:
    name = fn.child_by_field_name("name")
    if name is not None:
        return Edit(name.start_byte, name.end_byte, canonical)
    params = fn.child_by_field_name("parameters")
    if params is None:
        return None
    # function(e) → function __require(e)
    before = tree.source[params.start_byte - 1:params.start_byte]
    prefix = "" if before.isspace() else " "
    return Edit(params.start_byte, params.start_byte, prefix + canonical)


# ─────────────────────────── 2) Detektering ───────────────────────────

def find_rename_targets(tree: SyntaxTree) -> List[RenameTarget]:
    """
    Första passet. Skannar alla variabeldeklaratorer (även nästlade) och
    returnerar högst en träff per shim-typ. Avbryter när båda är hittade.
    """
    require: Optional[RenameTarget] = None
    export_all: Optional[RenameTarget] = None

    for node in iter_preorder(tree.root):
        if require is not None and export_all is not None:
            break
        if node.type != "variable_declarator":
            continue
        name = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if value is None or name is None or not is_identifier(name, tree):
            continue
        bound = tree.text(name)
        span = (name.start_byte, name.end_byte)

        if require is None:
            fn = _require_shim_function(value, tree)
            if fn is not None:
                require = RenameTarget(bound, REQUIRE_NAME, span, _function_name_edit(fn, tree, REQUIRE_NAME))
                log.debug("require-shim hittad: %s", bound)
                continue

        if export_all is None and value.type == "arrow_function" and _tags_module(value, tree):
            export_all = RenameTarget(bound, EXPORT_ALL_NAME, span)
            log.debug("exportAll-hjälpare hittad: %s", bound)

    return [t for t in (require, export_all) if t is not None]


# ─────────────────────────── 3) Omskrivning ───────────────────────────

def _export_edits(tree: SyntaxTree, targets: List[RenameTarget]) -> List[Edit]:
    """`export { r }` → `export { __require }`, `export { r as x }` → `export { __require as x }`."""
    by_name = {t.bound_name: t.canonical_name for t in targets}
    edits: List[Edit] = []
    for node in iter_preorder(tree.root):
        if node.type != "export_statement":
            continue
        # Re-export från annan modul refererar inte den lokala bindningen
        if node.child_by_field_name("source") is not None:
            continue
        for clause in node.named_children:
            if clause.type != "export_clause":
                continue
            for specifier in clause.named_children:
                if specifier.type != "export_specifier":
                    continue
                local = specifier.child_by_field_name("name")
                if local is None or local.type != "identifier":
                    continue
                canonical = by_name.get(tree.text(local))
                if canonical is not None:
                    edits.append(Edit(local.start_byte, local.end_byte, canonical))
    return edits


def rewrite_targets(tree: SyntaxTree, targets: List[RenameTarget]) -> List[Edit]:
    """Andra passet: alla edits för de hittade målen, no-op-edits borttagna."""
    edits: List[Edit] = []
    for t in targets:
        edits.append(Edit(t.name_span[0], t.name_span[1], t.canonical_name))
        if t.function_edit is not None:
            edits.append(t.function_edit)
    edits.extend(_export_edits(tree, targets))

    unique = {(e.start, e.end): e for e in edits}
    return [
        e for e in sorted(unique.values(), key=lambda e: e.start)
        if tree.source[e.start:e.end].decode("utf-8") != e.text
    ]


def normalize_shims(source: str) -> str:
    """
    Döper om require-shim och exportAll-hjälpare till kanoniska namn.
    Höjer ParseError om källan inte går att parsa.
    """
    tree = parse(source)
    targets = find_rename_targets(tree)
    if not targets:
        return source

    edits = rewrite_targets(tree, targets)
    if not edits:
        return source

    log.info(
        "Shims normaliserade",
        extra={"targets": {t.bound_name: t.canonical_name for t in targets}, "edits": len(edits)},
    )
    return apply_edits(tree.source, edits)
