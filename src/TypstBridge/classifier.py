from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Union

from .model import (
    BlockKind,
    CodeBlock,
    Comment,
    Directive,
    FigureBlock,
    Heading,
    ListItem,
    ListKind,
    MathBlock,
    Paragraph,
    ParagraphBreak,
    TableBlock,
)

FENCE = "```"
MAX_HEADING_LEVEL = 6

_HEADING_RE = re.compile(r"^(=+) ")
_NUMBERED_RE = re.compile(r"^(\d+)\. ")
_DIRECTIVE_PREFIXES = ("#set ", "#show ", "#let ")


@dataclass
class ClassifiedLine:
    line_index: int
    kind: BlockKind
    raw: str
    content: str = ""
    line_span: int = 1


@dataclass
class Scanning:
    """Outside any modal region."""


@dataclass
class InFence:
    language: str
    start: int
    lines: List[str] = field(default_factory=list)


ScanState = Union[Scanning, InFence]


def classify_lines(text: str, max_heading_level: int = MAX_HEADING_LEVEL) -> list[ClassifiedLine]:
    """Split markup into lines and classify each one into a block kind.

    Lines inside a fenced region are folded into a single ``CodeBlock`` record
    covering the fences too. An unterminated fence swallows the rest of the
    input instead of failing.
    """
    lines = text.replace("\r\n", "\n").split("\n")
    result: list[ClassifiedLine] = []
    state: ScanState = Scanning()

    for index, line in enumerate(lines):
        stripped = line.strip()
        if isinstance(state, InFence):
            if stripped == FENCE:
                result.append(_close_fence(state, index))
                state = Scanning()
            else:
                state.lines.append(line)
            continue
        if stripped.startswith(FENCE):
            state = InFence(language=stripped[len(FENCE):].strip(), start=index)
            continue
        result.append(classify_line(index, line, max_heading_level))

    if isinstance(state, InFence):
        result.append(_close_fence(state, len(lines) - 1))
    return result


def classify_line(index: int, line: str, max_heading_level: int = MAX_HEADING_LEVEL) -> ClassifiedLine:
    stripped = line.strip()

    heading = _HEADING_RE.match(line)
    if heading and len(heading.group(1)) <= max_heading_level:
        return ClassifiedLine(index, Heading(level=len(heading.group(1))), line, line[heading.end():])

    if line.startswith("- "):
        return ClassifiedLine(index, ListItem(list_kind=ListKind.BULLET), line, line[2:])
    if line.startswith("+ "):
        return ClassifiedLine(index, ListItem(list_kind=ListKind.ENUM), line, line[2:])
    numbered = _NUMBERED_RE.match(line)
    if numbered:
        kind = ListItem(list_kind=ListKind.NUMBERED, ordinal=numbered.group(1))
        return ClassifiedLine(index, kind, line, line[numbered.end():])

    literal = _display_math_literal(stripped)
    if literal is not None:
        return ClassifiedLine(index, MathBlock(literal=literal), line)

    if stripped.startswith(_DIRECTIVE_PREFIXES):
        return ClassifiedLine(index, Directive(), line)
    if stripped.startswith("#figure("):
        return ClassifiedLine(index, FigureBlock(), line)
    if stripped.startswith("#table("):
        return ClassifiedLine(index, TableBlock(), line)
    if stripped.startswith("//"):
        return ClassifiedLine(index, Comment(), line)

    if not stripped:
        return ClassifiedLine(index, ParagraphBreak(), line)
    return ClassifiedLine(index, Paragraph(), line, line)


def _display_math_literal(stripped: str) -> str | None:
    if len(stripped) > 4 and stripped.startswith("$ ") and stripped.endswith(" $"):
        return stripped[2:-2].strip()
    return None


def _close_fence(state: InFence, end: int) -> ClassifiedLine:
    code = "\n".join(state.lines)
    span = end - state.start + 1
    return ClassifiedLine(state.start, CodeBlock(language=state.language), code, line_span=span)
