from __future__ import annotations

import re
from typing import Callable, Iterable, List, Sequence, Tuple

from .model import (
    Bold,
    FunctionCall,
    InlineCode,
    InlineElement,
    InlineMath,
    Italic,
    Label,
    Link,
    PlainText,
    Reference,
    Strike,
    Subscript,
    Superscript,
    Underline,
)

SpanFactory = Callable[[re.Match], InlineElement]


def _text(value: str) -> List[InlineElement]:
    return [PlainText(value)]


# Order matters: every rule only sees the plain text left over by the ones before it.
INLINE_RULES: Sequence[Tuple[re.Pattern, SpanFactory]] = (
    (re.compile(r"\*([^*]+)\*"), lambda m: Bold(_text(m.group(1)))),
    (re.compile(r"_([^_]+)_"), lambda m: Italic(_text(m.group(1)))),
    (re.compile(r"`([^`]+)`"), lambda m: InlineCode(m.group(1))),
    (re.compile(r"\$([^$]+)\$"), lambda m: InlineMath(m.group(1))),
    (re.compile(r'#link\("([^"]+)"\)\[([^\]]+)\]'), lambda m: Link(m.group(1), _text(m.group(2)))),
    (re.compile(r"#(\w+)\(([^)]*)\)"), lambda m: FunctionCall(m.group(1), m.group(2))),
    (re.compile(r"#sub\[([^\]]+)\]"), lambda m: Subscript(_text(m.group(1)))),
    (re.compile(r"#super\[([^\]]+)\]"), lambda m: Superscript(_text(m.group(1)))),
    (re.compile(r"#underline\[([^\]]+)\]"), lambda m: Underline(_text(m.group(1)))),
    (re.compile(r"#strike\[([^\]]+)\]"), lambda m: Strike(_text(m.group(1)))),
    (re.compile(r"<(\w+)>"), lambda m: Label(m.group(1))),
    (re.compile(r"@(\w+)"), lambda m: Reference(m.group(1))),
)


def resolve_inline(text: str) -> list[InlineElement]:
    """Turn one block's inline text into a flat list of spans.

    Unmatched delimiters stay in ``PlainText``; this never raises.
    """
    spans: list[InlineElement] = [PlainText(text)] if text else []
    for pattern, factory in INLINE_RULES:
        spans = list(_apply_rule(spans, pattern, factory))
    return spans


def _apply_rule(spans: Iterable[InlineElement], pattern: re.Pattern, factory: SpanFactory):
    for span in spans:
        if not isinstance(span, PlainText):
            yield span
            continue
        cursor = 0
        for match in pattern.finditer(span.text):
            if match.start() > cursor:
                yield PlainText(span.text[cursor:match.start()])
            yield factory(match)
            cursor = match.end()
        if cursor < len(span.text):
            yield PlainText(span.text[cursor:])


def inline_to_markup(spans: Iterable[InlineElement]) -> str:
    return "".join(_span_to_markup(span) for span in spans)


def _span_to_markup(span: InlineElement) -> str:
    if isinstance(span, PlainText):
        return span.text
    if isinstance(span, Bold):
        return f"*{inline_to_markup(span.children)}*"
    if isinstance(span, Italic):
        return f"_{inline_to_markup(span.children)}_"
    if isinstance(span, InlineCode):
        return f"`{span.text}`"
    if isinstance(span, InlineMath):
        return f"${span.text}$"
    if isinstance(span, Link):
        return f'#link("{span.href}")[{inline_to_markup(span.children)}]'
    if isinstance(span, FunctionCall):
        return f"#{span.name}({span.args})"
    if isinstance(span, Subscript):
        return f"#sub[{inline_to_markup(span.children)}]"
    if isinstance(span, Superscript):
        return f"#super[{inline_to_markup(span.children)}]"
    if isinstance(span, Underline):
        return f"#underline[{inline_to_markup(span.children)}]"
    if isinstance(span, Strike):
        return f"#strike[{inline_to_markup(span.children)}]"
    if isinstance(span, Label):
        return f"<{span.name}>"
    if isinstance(span, Reference):
        return f"@{span.name}"
    raise TypeError(f"Unsupported inline element: {type(span).__name__}")
