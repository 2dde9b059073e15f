from __future__ import annotations

import logging
import re

from lxml import html
from lxml.html import HtmlElement

from .config import BridgeOptions
from .inline import inline_to_markup
from .model import BlockNode, CodeBlock, Document, Heading, ListItem, ListKind, MathBlock, ParagraphBreak
from .tree_builder import ROOT_CLASS, append_text

logger = logging.getLogger(__name__)

FENCE = "```"

_HEADING_TAGS = {f"h{level}": level for level in range(1, 7)}
_HEADING_CLASSES = {f"visual-h{level}": level for level in range(1, 7)}
_MARKER_CLASSES = {"visual-bullet", "visual-enum", "visual-num"}
_VERBATIM_CLASSES = {"visual-directive", "visual-figure", "visual-table", "visual-comment"}
_LIST_PREFIXES = {"bullet": "- ", "enum": "+ "}

# (classes, bare tags, opening delimiter, closing delimiter)
_WRAPPERS = (
    ({"visual-bold"}, {"strong", "b"}, "*", "*"),
    ({"visual-italic"}, {"em", "i"}, "_", "_"),
    ({"visual-inline-code"}, {"code"}, "`", "`"),
    ({"visual-sub"}, {"sub"}, "#sub[", "]"),
    ({"visual-super"}, {"sup"}, "#super[", "]"),
    ({"visual-underline"}, {"u"}, "#underline[", "]"),
    ({"visual-strike"}, {"s", "strike", "del"}, "#strike[", "]"),
)
_TEXT_CLASSES = {"visual-function", "visual-label", "visual-ref"}

_MATH_DELIMITERS_RE = re.compile(r"^\$\s*|\s*\$$")
_INLINE_MATH_RE = re.compile(r"^\$+|\$+$")


def to_markup(tree: HtmlElement, options: BridgeOptions | None = None) -> str:
    """Serialize an edited element tree back into markup text.

    Each top-level element yields one line (or one multi-line block for code).
    Stored ``data-*`` metadata wins over the rendered text.
    """
    collapse = options.collapse_blank_lines if options else True
    lines: list[str] = []
    if tree.text and tree.text.strip():
        lines.append(tree.text.strip("\n"))
    for child in tree:
        if isinstance(child.tag, str):
            lines.append(_node_to_markup(child))
        if child.tail and child.tail.strip():
            lines.append(child.tail.strip("\n"))
    if collapse:
        lines = _collapse_blank_lines(lines)
    logger.debug("Serialized %d top-level nodes into %d lines", len(tree), len(lines))
    return "\n".join(lines)


def document_to_markup(document: Document, options: BridgeOptions | None = None) -> str:
    """Serialize block nodes straight back to markup, without building a tree."""
    collapse = options.collapse_blank_lines if options else True
    lines = [_block_to_markup(block) for block in document.blocks]
    if collapse:
        lines = _collapse_blank_lines(lines)
    return "\n".join(lines)


def from_html(source: str) -> HtmlElement:
    """Parse host HTML (the editor container or just its inner HTML) into a tree."""
    fragments = html.fragments_fromstring(source) if source.strip() else []
    if len(fragments) == 1 and not isinstance(fragments[0], str):
        if ROOT_CLASS in _classes(fragments[0]):
            return fragments[0]
    root = html.Element("div")
    root.set("class", ROOT_CLASS)
    for fragment in fragments:
        if isinstance(fragment, str):
            append_text(root, fragment)
        else:
            root.append(fragment)
    return root


def html_to_markup(source: str, options: BridgeOptions | None = None) -> str:
    return to_markup(from_html(source), options)


def count_lines(tree: HtmlElement) -> int:
    """Visual line count shown in the editor gutter."""
    return max(sum(1 for child in tree if isinstance(child.tag, str)), 1)


def _collapse_blank_lines(lines: list[str]) -> list[str]:
    cleaned: list[str] = []
    last_was_empty = False
    for line in lines:
        is_empty = not line.strip()
        if is_empty and last_was_empty:
            continue
        cleaned.append("" if is_empty else line)
        last_was_empty = is_empty
    return cleaned


def _block_to_markup(block: BlockNode) -> str:
    kind = block.kind
    if isinstance(kind, Heading):
        return "=" * kind.level + " " + inline_to_markup(block.inline)
    if isinstance(kind, ListItem):
        if kind.list_kind is ListKind.NUMBERED:
            prefix = f"{kind.ordinal}. "
        else:
            prefix = _LIST_PREFIXES[kind.list_kind.value]
        return prefix + inline_to_markup(block.inline)
    if isinstance(kind, CodeBlock):
        body = f"{block.raw}\n" if block.raw else ""
        return f"{FENCE}{kind.language}\n{body}{FENCE}"
    if isinstance(kind, MathBlock):
        return f"$ {kind.literal} $"
    if isinstance(kind, ParagraphBreak):
        return ""
    if kind.verbatim:
        return block.raw
    return inline_to_markup(block.inline)


def _classes(element: HtmlElement) -> set[str]:
    return set((element.get("class") or "").split())


def _node_to_markup(element: HtmlElement) -> str:
    tag = element.tag.lower()
    classes = _classes(element)

    level = _heading_level(element, classes, tag)
    if level is not None:
        return "=" * level + " " + _children_to_markup(element)

    if "visual-list-item" in classes:
        return _list_item_to_markup(element)

    if "visual-code-block" in classes:
        language = element.get("data-lang") or ""
        code_element = element.find(".//code")
        code = _text(code_element if code_element is not None else element)
        body = f"{code}\n" if code else ""
        return f"{FENCE}{language}\n{body}{FENCE}"

    if "visual-math-block" in classes:
        literal = element.get("data-math")
        if literal is None:
            literal = _MATH_DELIMITERS_RE.sub("", _text(element))
        return f"$ {literal} $"

    if classes & _VERBATIM_CLASSES:
        return _text(element)

    if "visual-paragraph-break" in classes:
        return ""

    if "visual-paragraph" in classes or tag == "p":
        return _children_to_markup(element)

    for wrapper_classes, tags, opening, closing in _WRAPPERS:
        if classes & wrapper_classes or tag in tags:
            return opening + _children_to_markup(element) + closing

    if "visual-inline-math" in classes:
        return "$" + _INLINE_MATH_RE.sub("", _text(element)) + "$"

    if "visual-link" in classes or tag == "a":
        href = element.get("href") or ""
        return f'#link("{href}")[{_children_to_markup(element)}]'

    if classes & _TEXT_CLASSES:
        return _text(element)

    if tag == "br":
        return "\n"

    return _children_to_markup(element)


def _heading_level(element: HtmlElement, classes: set[str], tag: str) -> int | None:
    by_class = [_HEADING_CLASSES[name] for name in classes if name in _HEADING_CLASSES]
    if not by_class and tag not in _HEADING_TAGS:
        return None
    stored = element.get("data-level") or ""
    if stored.isdigit() and 1 <= int(stored) <= 6:
        return int(stored)
    return by_class[0] if by_class else _HEADING_TAGS[tag]


def _list_item_to_markup(element: HtmlElement) -> str:
    list_type = element.get("data-type")
    content = _children_to_markup(element, skip_markers=True)
    if list_type == "numbered":
        ordinal = element.get("data-num")
        assert ordinal, "numbered list item without data-num"
        return f"{ordinal}. {content}"
    return _LIST_PREFIXES.get(list_type, "- ") + content


def _children_to_markup(element: HtmlElement, skip_markers: bool = False) -> str:
    parts = [element.text or ""]
    for child in element:
        if isinstance(child.tag, str):
            if not (skip_markers and _classes(child) & _MARKER_CLASSES):
                parts.append(_node_to_markup(child))
        parts.append(child.tail or "")
    return "".join(parts)


def _text(element: HtmlElement) -> str:
    return str(element.text_content())
