from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class ListKind(str, Enum):
    BULLET = "bullet"
    ENUM = "enum"
    NUMBERED = "numbered"


@dataclass
class BlockKind:
    """Base class for block kinds."""

    verbatim = False


@dataclass
class Heading(BlockKind):
    level: int


@dataclass
class Paragraph(BlockKind):
    """Plain text line with inline markup."""


@dataclass
class ParagraphBreak(BlockKind):
    """Blank line."""


@dataclass
class ListItem(BlockKind):
    list_kind: ListKind
    ordinal: str | None = None


@dataclass
class CodeBlock(BlockKind):
    language: str = ""
    verbatim = True


@dataclass
class MathBlock(BlockKind):
    literal: str
    verbatim = True


@dataclass
class Directive(BlockKind):
    """Raw `#set` / `#show` / `#let` line."""

    verbatim = True


@dataclass
class FigureBlock(BlockKind):
    verbatim = True


@dataclass
class TableBlock(BlockKind):
    verbatim = True


@dataclass
class Comment(BlockKind):
    verbatim = True


@dataclass
class InlineElement:
    """Base class for inline nodes."""


@dataclass
class PlainText(InlineElement):
    text: str


@dataclass
class Bold(InlineElement):
    children: List[InlineElement]


@dataclass
class Italic(InlineElement):
    children: List[InlineElement]


@dataclass
class InlineCode(InlineElement):
    text: str


@dataclass
class InlineMath(InlineElement):
    text: str


@dataclass
class Link(InlineElement):
    href: str
    children: List[InlineElement]


@dataclass
class Subscript(InlineElement):
    children: List[InlineElement]


@dataclass
class Superscript(InlineElement):
    children: List[InlineElement]


@dataclass
class Underline(InlineElement):
    children: List[InlineElement]


@dataclass
class Strike(InlineElement):
    children: List[InlineElement]


@dataclass
class Label(InlineElement):
    name: str


@dataclass
class Reference(InlineElement):
    name: str


@dataclass
class FunctionCall(InlineElement):
    name: str
    args: str


@dataclass
class BlockNode:
    kind: BlockKind
    inline: List[InlineElement] = field(default_factory=list)
    raw: str = ""
    source_line: int = 1
    line_span: int = 1


@dataclass
class Document:
    blocks: List[BlockNode]
