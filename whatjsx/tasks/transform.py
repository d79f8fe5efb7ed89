# whatjsx/tasks/transform.py
"""
createElement → JSX-rekonstruktion.

Varje anrop av formen `<Ident>.createElement(type, props, ...children)` byts ut
mot motsvarande JSX-element:

    React.createElement("div", { id: "x" }, "hello")   →  <div id="x">hello</div>
    React.createElement("br")                          →  <br />
    React.createElement("ul", null, ...items)          →  <ul>{items}</ul>
    React.createElement(getType(), null)               →  (orört)

Regler:
- Tagg: strängliteral → JSX-namn av värdet; identifierare → komponentreferens.
  Allt annat (member/call/spread …) går inte att återskapa och lämnas orört.
- Attribut skapas bara ur en objektliteral. `key: "str"` blir strängattribut,
  övriga värden en expression container runt originaluttrycket. Spread,
  computed och sträng-/nummernycklar hoppas tyst över.
- Barn: strängliteral → JSX-text, `...expr` → {expr} (spread-operatorn släpps
  medvetet), övrigt → {uttryck}.
- Inga barn → självstängande element.

Traverseringen är postorder och testar varje call_expression för sig. Nästlade
anrop (barn, attributvärden, argument till anrop som inte kan återskapas)
skrivs om vid sitt eget besök; föräldern skarvar in deras text. Resultatet är
idempotent: ett andra pass över utdata ändrar ingenting.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from tree_sitter import Node

from .syntax import (
    Edit,
    SyntaxTree,
    apply_edits,
    arguments_of,
    iter_postorder,
    parse,
    string_value,
)

log = logging.getLogger("whatjsx/transform")

# Endast `React.createElement` som standard. None = valfri identifierare.
DEFAULT_RECEIVERS: Tuple[str, ...] = ("React",)

# JSX-elementnamn: ident eller ident-med-bindestreck. `a.b` och `ns:name` är
# member- resp. namespace-uttryck i JSX, inte taggnamn.
_JSX_NAME = re.compile(r"^[A-Za-z_$][\w$-]*$")

# Tecken som ändrar betydelse i JSX-text (&amp; avkodas, klamrar/taggar tolkas)
_TEXT_UNSAFE = re.compile(r"[{}<>&\r\n]")
_ATTR_UNSAFE = re.compile(r"[&\r\n]")


def _encodable(value: str) -> bool:
    # Ensamma surrogater går inte att skriva som UTF-8-text
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


# ─────────────────────────── 1) Datatyper ───────────────────────────

@dataclass(frozen=True)
class CallShape:
    node: Node
    receiver: str
    type_arg: Node
    props_arg: Optional[Node]
    child_args: List[Node]


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Expression:
    node: Node


@dataclass(frozen=True)
class Spread:
    node: Node  # uttrycket innanför `...`


ChildDescriptor = Union[Text, Expression, Spread]


@dataclass(frozen=True)
class Attribute:
    name: str
    value: Node
    literal: Optional[str] = None  # färdigciterad JSX-sträng, annars expression container

    @property
    def kind(self) -> str:
        return "string" if self.literal is not None else "expression"


@dataclass(frozen=True)
class ElementDescriptor:
    tag_name: str
    attributes: List[Attribute] = field(default_factory=list)
    children: List[ChildDescriptor] = field(default_factory=list)

    @property
    def self_closing(self) -> bool:
        return not self.children


# ─────────────────────────── 2) Matchning ───────────────────────────

def _receiver_policy(receivers: Optional[Iterable[str]]) -> Optional[FrozenSet[str]]:
    return None if receivers is None else frozenset(receivers)


def match_call(node: Node, tree: SyntaxTree, receivers: Optional[FrozenSet[str]]) -> Optional[CallShape]:
    """CallShape om noden är `<Ident>.createElement(minst ett argument)`, annars None."""
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "member_expression":
        return None
    if any(c.type == "optional_chain" for c in callee.children):
        return None
    obj = callee.child_by_field_name("object")
    prop = callee.child_by_field_name("property")
    if obj is None or obj.type != "identifier":
        return None
    if prop is None or prop.type != "property_identifier" or tree.text(prop) != "createElement":
        return None
    receiver = tree.text(obj)
    if receivers is not None and receiver not in receivers:
        return None

    args = arguments_of(node)
    if not args:
        return None
    return CallShape(
        node=node,
        receiver=receiver,
        type_arg=args[0],
        props_arg=args[1] if len(args) > 1 else None,
        child_args=args[2:],
    )


# ─────────────────────────── 3) Uppdelning ───────────────────────────

def _tag_name(type_arg: Node, tree: SyntaxTree) -> Optional[str]:
    if type_arg.type == "string":
        value = string_value(type_arg, tree)
        return value if _JSX_NAME.match(value) else None
    if type_arg.type == "identifier":
        return tree.text(type_arg)
    return None


def _quote_attr(value: str) -> Optional[str]:
    # JSX-attributsträngar saknar escapes: välj ett citattecken som inte förekommer
    if _ATTR_UNSAFE.search(value) or not _encodable(value):
        return None
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"
    return None


def _attributes(props_arg: Optional[Node], tree: SyntaxTree) -> List[Attribute]:
    if props_arg is None or props_arg.type == "null":
        return []
    if props_arg.type != "object":
        # props som variabel/anrop/Object.assign: accepterad förlust
        log.debug("props utan objektliteral ignoreras: %s", tree.text(props_arg)[:80])
        return []

    attrs: List[Attribute] = []
    for member in props_arg.named_children:
        if member.type == "pair":
            key = member.child_by_field_name("key")
            value = member.child_by_field_name("value")
            if key is None or value is None or key.type != "property_identifier":
                continue
            literal = _quote_attr(string_value(value, tree)) if value.type == "string" else None
            attrs.append(Attribute(tree.text(key), value, literal))
        elif member.type == "shorthand_property_identifier":
            attrs.append(Attribute(tree.text(member), member))
        else:
            # spread_element, method_definition, comment …
            continue
    return attrs


def _children(child_args: Sequence[Node], tree: SyntaxTree) -> List[ChildDescriptor]:
    out: List[ChildDescriptor] = []
    for arg in child_args:
        if arg.type == "string":
            value = string_value(arg, tree)
            if value and value == value.strip() and not _TEXT_UNSAFE.search(value) and _encodable(value):
                out.append(Text(value))
            else:
                # Blanktecken i kanterna trimmas och {}<>& tolkas i JSX-text
                out.append(Expression(arg))
        elif arg.type == "spread_element":
            inner = [c for c in arg.named_children if c.type != "comment"]
            out.append(Spread(inner[0]) if inner else Expression(arg))
        else:
            out.append(Expression(arg))
    return out


def describe(shape: CallShape, tree: SyntaxTree) -> Optional[ElementDescriptor]:
    """ElementDescriptor för anropet, eller None om det inte går att återskapa."""
    tag = _tag_name(shape.type_arg, tree)
    if tag is None:
        return None
    if shape.props_arg is not None and shape.props_arg.type == "spread_element":
        # createElement("div", ...rest): argumentpositionerna är okända
        return None
    return ElementDescriptor(
        tag_name=tag,
        attributes=_attributes(shape.props_arg, tree),
        children=_children(shape.child_args, tree),
    )


# ─────────────────────────── 4) Rendering ───────────────────────────

def _container(node: Node, tree: SyntaxTree, edits: Sequence[Edit]) -> str:
    return "{" + tree.slice_with_edits(node.start_byte, node.end_byte, edits) + "}"


def render(element: ElementDescriptor, tree: SyntaxTree, edits: Sequence[Edit] = ()) -> str:
    """
    JSX-text för elementet. `edits` är redan återskapade anrop inuti det här
    anropet; de skarvas in i attributvärden och barnuttryck.
    """
    parts = ["<", element.tag_name]
    for attr in element.attributes:
        value = attr.literal if attr.literal is not None else _container(attr.value, tree, edits)
        parts.append(f" {attr.name}={value}")

    if element.self_closing:
        parts.append(" />")
        return "".join(parts)

    parts.append(">")
    for child in element.children:
        if isinstance(child, Text):
            parts.append(child.value)
        elif isinstance(child, (Expression, Spread)):
            parts.append(_container(child.node, tree, edits))
        else:
            raise TypeError(f"Okänd barntyp: {type(child).__name__}")
    parts.append(f"</{element.tag_name}>")
    return "".join(parts)


# ─────────────────────────── 5) Publik API ───────────────────────────

def reconstruct_jsx(source: str, receivers: Optional[Iterable[str]] = DEFAULT_RECEIVERS) -> str:
    """
    Ersätter alla matchande createElement-anrop i `source` med JSX.
    Anrop som inte kan återskapas lämnas orörda. Höjer ParseError vid syntaxfel.
    """
    tree = parse(source)
    policy = _receiver_policy(receivers)

    # Postorder: ättlingar besöks före föräldern, så färdiga edits för
    # nästlade anrop ligger överst på stacken när föräldern renderas.
    pending: List[Edit] = []
    rebuilt = skipped = 0
    for node in iter_postorder(tree.root):
        if node.type != "call_expression":
            continue
        shape = match_call(node, tree, policy)
        if shape is None:
            continue
        element = describe(shape, tree)
        if element is None:
            skipped += 1
            log.debug("createElement lämnas orört: %s", tree.text(node)[:80])
            continue

        inner: List[Edit] = []
        while pending and pending[-1].start >= node.start_byte:
            inner.append(pending.pop())
        inner.reverse()
        pending.append(Edit(node.start_byte, node.end_byte, render(element, tree, inner)))
        rebuilt += 1

    if not pending:
        return source

    log.debug("JSX återskapad", extra={"elements": rebuilt, "skipped": skipped})
    return apply_edits(tree.source, pending)
