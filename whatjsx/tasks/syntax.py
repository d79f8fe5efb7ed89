# whatjsx/tasks/syntax.py
"""
Syntaxlager för båda omskrivningspassen: TSX-parser (tree-sitter), trädvandring
och en "printer" som skarvar in ändringar i källtexten.

Trädet från tree-sitter är oföränderligt. Omskrivningar uttrycks därför som
icke-överlappande byte-intervall (Edit) över källan; allt som inte täcks av en
Edit skrivs ut byte för byte.

Publik API:
    parse(text) -> SyntaxTree          (höjer ParseError vid syntaxfel)
    apply_edits(source, edits) -> str
    iter_preorder(node) / iter_postorder(node)
    arguments_of(node), string_value(node, tree), template_value(node, tree)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence

import tree_sitter_typescript as tsts
from tree_sitter import Language, Node, Parser, Tree

# ─────────────────────────── 0) Språk & fel ───────────────────────────

# TSX-grammatiken klarar både vanlig JS och JSX i samma fil.
TSX_LANGUAGE = Language(tsts.language_tsx())


class ParseError(ValueError):
    """Källtexten är inte syntaktiskt giltig. Bär rad och kolumn (1-baserade)."""

    def __init__(self, message: str, line: int = 0, column: int = 0) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


@dataclass(frozen=True)
class Edit:
    """Ersätt source[start:end] (byte-offsets) med text."""

    start: int
    end: int
    text: str


# ─────────────────────────── 1) Parsning ───────────────────────────

class SyntaxTree:
    """Ett parsat källträd plus UTF-8-bytes som offseten pekar in i."""

    def __init__(self, tree: Tree, source: bytes) -> None:
        self.tree = tree
        self.source = source

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node) -> str:
        return self.slice(node.start_byte, node.end_byte)

    def slice(self, start: int, end: int) -> str:
        return self.source[start:end].decode("utf-8")

    def slice_with_edits(self, start: int, end: int, edits: Sequence[Edit]) -> str:
        """Text för [start, end) där de edits som ligger helt inom intervallet skarvats in."""
        inner = [e for e in edits if start <= e.start and e.end <= end]
        return _splice(self.source, start, end, inner)


def _first_error(root: Node) -> Node:
    for node in iter_preorder(root):
        if node.is_error or node.is_missing:
            return node
    return root


def parse(text: str) -> SyntaxTree:
    """
    Parsar `text` med TSX-grammatiken. tree-sitter är feltolerant, så alla
    ERROR/MISSING-noder i trädet omvandlas här till ParseError.
    """
    source = text.encode("utf-8")
    parser = Parser(TSX_LANGUAGE)
    tree = parser.parse(source)
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root)
        row, col = bad.start_point
        if bad.is_missing:
            what = f"saknar '{bad.type}'"
        else:
            snippet = source[bad.start_byte:bad.end_byte][:40].decode("utf-8", "replace")
            what = f"oväntad text {snippet!r}" if snippet else "oväntat slut på indata"
        raise ParseError(f"Syntaxfel på rad {row + 1}, kolumn {col + 1}: {what}", row + 1, col + 1)
    return SyntaxTree(tree, source)


# ─────────────────────────── 2) Printer ───────────────────────────

def _splice(source: bytes, start: int, end: int, edits: Iterable[Edit]) -> str:
    parts: List[str] = []
    cursor = start
    for e in sorted(edits, key=lambda e: e.start):
        if e.start < cursor:
            raise ValueError(f"Överlappande edits vid byte {e.start}")
        parts.append(source[cursor:e.start].decode("utf-8"))
        parts.append(e.text)
        cursor = e.end
    parts.append(source[cursor:end].decode("utf-8"))
    return "".join(parts)


def apply_edits(source: bytes, edits: Iterable[Edit]) -> str:
    """Skriver ut hela källan med edits inskarvade."""
    return _splice(source, 0, len(source), edits)


# ─────────────────────────── 3) Traversering ───────────────────────────
# Minifierade bundles ger mycket djupa träd (långa komma-sekvenser), så all
# vandring går via TreeCursor i stället för rekursion.

def iter_preorder(node: Node) -> Iterator[Node]:
    cursor = node.walk()
    while True:
        yield cursor.node
        if cursor.goto_first_child():
            continue
        while not cursor.goto_next_sibling():
            if not cursor.goto_parent():
                return


def iter_postorder(node: Node) -> Iterator[Node]:
    cursor = node.walk()
    descend = True
    while True:
        if descend and cursor.goto_first_child():
            continue
        yield cursor.node
        if cursor.goto_next_sibling():
            descend = True
        elif cursor.goto_parent():
            descend = False
        else:
            return


# ─────────────────────────── 4) Nodhjälpare ───────────────────────────

def named_children(node: Node) -> List[Node]:
    """Namngivna barn utan kommentarer."""
    return [c for c in node.named_children if c.type != "comment"]


def arguments_of(call: Node) -> Optional[List[Node]]:
    """Argumentlistan för call/new-uttryck, eller None (t.ex. taggade templates)."""
    args = call.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return None
    return named_children(args)


def is_identifier(node: Optional[Node], tree: SyntaxTree, name: str | None = None) -> bool:
    if node is None or node.type != "identifier":
        return False
    return name is None or tree.text(node) == name


def is_member(node: Optional[Node], tree: SyntaxTree, obj: str, prop: str) -> bool:
    """Exakt `obj.prop` (ingen optional chaining, ingen computed access)."""
    if node is None or node.type != "member_expression":
        return False
    if any(c.type == "optional_chain" for c in node.children):
        return False
    o = node.child_by_field_name("object")
    p = node.child_by_field_name("property")
    return (
        is_identifier(o, tree, obj)
        and p is not None
        and p.type == "property_identifier"
        and tree.text(p) == prop
    )


_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0",
}
_LINE_CONTINUATIONS = {"\n", "\r\n", "\r", "\u2028", "\u2029"}
_OCTAL = re.compile(r"^[0-7]{1,3}$")


def _decode_escape(seq: str) -> str:
    body = seq[1:]
    if body in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[body]
    if body in _LINE_CONTINUATIONS:
        return ""
    if body.startswith("x") and len(body) == 3:
        return chr(int(body[1:], 16))
    if body.startswith("u{") and body.endswith("}"):
        return chr(int(body[2:-1], 16))
    if body.startswith("u") and len(body) == 5:
        return chr(int(body[1:], 16))
    if _OCTAL.match(body):
        return chr(int(body, 8))
    # Identitets-escape: \" \' \\ m.fl.
    return body


def string_value(node: Node, tree: SyntaxTree) -> str:
    """Avkodat värde för en `string`-nod."""
    parts: List[str] = []
    for child in node.named_children:
        if child.type == "string_fragment":
            parts.append(tree.text(child))
        elif child.type == "escape_sequence":
            parts.append(_decode_escape(tree.text(child)))
    value = "".join(parts)
    try:
        # Surrogatpar (två escapes i följd) blir ett tecken
        return value.encode("utf-16", "surrogatepass").decode("utf-16")
    except UnicodeDecodeError:
        return value


def template_value(node: Node, tree: SyntaxTree) -> Optional[str]:
    """Värdet för en template-sträng utan substitutioner, annars None."""
    if node.type != "template_string":
        return None
    if any(c.type == "template_substitution" for c in node.named_children):
        return None
    return tree.text(node)[1:-1]
