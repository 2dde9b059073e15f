from __future__ import annotations

import logging
import re
from typing import Iterable

from lxml import html
from lxml.etree import SubElement
from lxml.html import HtmlElement

from .classifier import MAX_HEADING_LEVEL, classify_lines
from .config import BridgeOptions
from .inline import resolve_inline
from .model import (
    BlockNode,
    Bold,
    CodeBlock,
    Comment,
    Directive,
    Document,
    FigureBlock,
    FunctionCall,
    Heading,
    InlineCode,
    InlineElement,
    InlineMath,
    Italic,
    Label,
    Link,
    ListItem,
    ListKind,
    MathBlock,
    Paragraph,
    ParagraphBreak,
    PlainText,
    Reference,
    Strike,
    Subscript,
    Superscript,
    TableBlock,
    Underline,
)

logger = logging.getLogger(__name__)

ROOT_CLASS = "visual-editor"

# Code points lxml refuses to store, lone surrogates included.
_XML_INVALID_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff\ud800-\udfff]")

_VERBATIM_CLASSES = {
    Directive: "visual-directive",
    FigureBlock: "visual-figure",
    TableBlock: "visual-table",
    Comment: "visual-comment",
}

_LIST_MARKERS = {
    ListKind.BULLET: ("visual-bullet", "•"),
    ListKind.ENUM: ("visual-enum", ""),
}

# span type -> (tag, class)
_CONTAINER_SPANS = {
    Bold: ("strong", "visual-bold"),
    Italic: ("em", "visual-italic"),
    Subscript: ("sub", "visual-sub"),
    Superscript: ("sup", "visual-super"),
    Underline: ("u", "visual-underline"),
    Strike: ("s", "visual-strike"),
}


def build_document(text: str, options: BridgeOptions | None = None) -> Document:
    """Classify markup lines and resolve inline content into block nodes."""
    max_level = options.max_heading_level if options else MAX_HEADING_LEVEL
    blocks: list[BlockNode] = []
    for line in classify_lines(text, max_heading_level=max_level):
        kind = line.kind
        node = BlockNode(kind=kind, source_line=line.line_index + 1, line_span=line.line_span)
        if kind.verbatim:
            node.raw = line.raw
        elif not isinstance(kind, ParagraphBreak):
            node.inline = resolve_inline(line.content)
        blocks.append(node)
    logger.debug("Built %d block nodes from %d chars", len(blocks), len(text))
    return Document(blocks=blocks)


def render_tree(document: Document) -> HtmlElement:
    """Render block nodes into an editable element tree, one child per block."""
    root = html.Element("div")
    root.set("class", ROOT_CLASS)
    for block in document.blocks:
        element = _render_block(root, block)
        element.set("data-line", str(block.source_line))
    return root


def to_tree(text: str, options: BridgeOptions | None = None) -> HtmlElement:
    return render_tree(build_document(text, options))


def to_html(text: str, options: BridgeOptions | None = None) -> str:
    return html.tostring(to_tree(text, options), encoding="unicode")


def _render_block(root: HtmlElement, block: BlockNode) -> HtmlElement:
    kind = block.kind
    if isinstance(kind, Heading):
        element = SubElement(root, f"h{kind.level}")
        element.set("class", f"visual-h{kind.level}")
        element.set("data-level", str(kind.level))
        _render_inline(element, block.inline)
    elif isinstance(kind, ListItem):
        element = _render_list_item(root, kind)
        _render_inline(element, block.inline)
    elif isinstance(kind, CodeBlock):
        element = SubElement(root, "pre")
        element.set("class", "visual-code-block")
        element.set("data-lang", _safe(kind.language))
        SubElement(element, "code").text = _safe(block.raw)
    elif isinstance(kind, MathBlock):
        element = SubElement(root, "div")
        element.set("class", "visual-math-block")
        element.set("data-math", _safe(kind.literal))
        element.text = _safe(f"$ {kind.literal} $")
    elif isinstance(kind, tuple(_VERBATIM_CLASSES)):
        element = SubElement(root, "div")
        element.set("class", _VERBATIM_CLASSES[type(kind)])
        element.text = _safe(block.raw)
    elif isinstance(kind, ParagraphBreak):
        element = SubElement(root, "div")
        element.set("class", "visual-paragraph-break")
    elif isinstance(kind, Paragraph):
        element = SubElement(root, "p")
        element.set("class", "visual-paragraph")
        _render_inline(element, block.inline)
    else:
        raise AssertionError(f"Block node without a renderable kind: {kind!r}")
    return element


def _render_list_item(root: HtmlElement, kind: ListItem) -> HtmlElement:
    element = SubElement(root, "div")
    element.set("class", "visual-list-item")
    element.set("data-type", kind.list_kind.value)
    marker = SubElement(element, "span")
    if kind.list_kind is ListKind.NUMBERED:
        assert kind.ordinal is not None, "numbered list item without ordinal"
        element.set("data-num", kind.ordinal)
        marker.set("class", "visual-num")
        marker.text = f"{kind.ordinal}."
    else:
        css_class, symbol = _LIST_MARKERS[kind.list_kind]
        marker.set("class", css_class)
        marker.text = symbol or None
    return element


def _render_inline(parent: HtmlElement, spans: Iterable[InlineElement]) -> None:
    for span in spans:
        if isinstance(span, PlainText):
            append_text(parent, span.text)
            continue
        if type(span) in _CONTAINER_SPANS:
            tag, css_class = _CONTAINER_SPANS[type(span)]
            child = _span_element(parent, tag, css_class)
            _render_inline(child, span.children)
        elif isinstance(span, Link):
            child = _span_element(parent, "a", "visual-link")
            child.set("href", _safe(span.href))
            _render_inline(child, span.children)
        elif isinstance(span, InlineCode):
            _span_element(parent, "code", "visual-inline-code").text = _safe(span.text)
        elif isinstance(span, InlineMath):
            _span_element(parent, "span", "visual-inline-math").text = _safe(f"${span.text}$")
        elif isinstance(span, FunctionCall):
            _span_element(parent, "span", "visual-function").text = _safe(f"#{span.name}({span.args})")
        elif isinstance(span, Label):
            _span_element(parent, "span", "visual-label").text = f"<{span.name}>"
        elif isinstance(span, Reference):
            _span_element(parent, "span", "visual-ref").text = f"@{span.name}"
        else:
            raise AssertionError(f"Unsupported inline element: {type(span).__name__}")


def _span_element(parent: HtmlElement, tag: str, css_class: str) -> HtmlElement:
    child = SubElement(parent, tag)
    child.set("class", css_class)
    return child


def append_text(parent: HtmlElement, text: str) -> None:
    text = _safe(text)
    if len(parent):
        last = parent[-1]
        last.tail = (last.tail or "") + text
    else:
        parent.text = (parent.text or "") + text


def _safe(text: str) -> str:
    return _XML_INVALID_RE.sub("\ufffd", text)
