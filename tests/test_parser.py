import textwrap

import pytest

from TypstBridge import classifier, tree_builder, tree_serializer
from TypstBridge.model import (
    CodeBlock,
    Comment,
    Directive,
    FigureBlock,
    Heading,
    InlineMath,
    Link,
    ListItem,
    ListKind,
    MathBlock,
    Paragraph,
    ParagraphBreak,
    PlainText,
    TableBlock,
)


def test_classify_block_kinds():
    text = textwrap.dedent(
        """\
        = Introduction
        === Scope
        - first
        + second
        12. twelfth
        $ E = m c^2 $
        #set page(margin: 2cm)
        #figure(image("a.png"))
        #table(columns: 2)
        // note to self

        Plain text."""
    )
    kinds = [line.kind for line in classifier.classify_lines(text)]
    assert kinds == [
        Heading(level=1),
        Heading(level=3),
        ListItem(list_kind=ListKind.BULLET),
        ListItem(list_kind=ListKind.ENUM),
        ListItem(list_kind=ListKind.NUMBERED, ordinal="12"),
        MathBlock(literal="E = m c^2"),
        Directive(),
        FigureBlock(),
        TableBlock(),
        Comment(),
        ParagraphBreak(),
        Paragraph(),
    ]


def test_heading_deeper_than_limit_is_paragraph():
    lines = classifier.classify_lines("==== Deep", max_heading_level=3)
    assert lines[0].kind == Paragraph()
    assert classifier.classify_lines("==== Deep")[0].kind == Heading(level=4)


def test_indented_list_marker_is_paragraph():
    assert classifier.classify_lines("  - not a list")[0].kind == Paragraph()


def test_fenced_code_is_one_block():
    text = "before\n```py\ndef f():\n    return 1\n```\nafter"
    lines = classifier.classify_lines(text)
    assert [type(line.kind) for line in lines] == [Paragraph, CodeBlock, Paragraph]
    code = lines[1]
    assert code.kind.language == "py"
    assert code.raw == "def f():\n    return 1"
    assert code.line_index == 1
    assert code.line_span == 4
    assert lines[2].line_index == 5


def test_fence_lines_inside_code_are_content():
    text = "```\nsome\n```js\n```"
    lines = classifier.classify_lines(text)
    assert len(lines) == 1
    assert lines[0].raw == "some\n```js"


def test_unterminated_fence_keeps_remaining_lines():
    lines = classifier.classify_lines("```py\nfoo")
    assert len(lines) == 1
    assert lines[0].kind == CodeBlock(language="py")
    assert lines[0].raw == "foo"
    assert lines[0].line_span == 2


def test_every_line_is_covered():
    text = "= A\n\n```\nx\n\ny\n```\n- b\n```c\nunterminated\n\n"
    document = tree_builder.build_document(text)
    assert sum(block.line_span for block in document.blocks) == len(text.split("\n"))


def test_build_document_resolves_inline_content():
    document = tree_builder.build_document('= See #link("https://typst.app")[Typst]\n- with $x^2$')
    heading, item = document.blocks
    assert heading.kind == Heading(level=1)
    assert heading.inline == [PlainText("See "), Link("https://typst.app", [PlainText("Typst")])]
    assert item.inline == [PlainText("with "), InlineMath("x^2")]
    assert item.source_line == 2


def test_verbatim_blocks_skip_inline_resolution():
    document = tree_builder.build_document("#set text(font: *bold*)\n// _x_")
    assert [block.raw for block in document.blocks] == ["#set text(font: *bold*)", "// _x_"]
    assert all(not block.inline for block in document.blocks)


def test_tree_metadata():
    tree = tree_builder.to_tree("== Title\n5. fifth\n```rust\nfn main() {}\n```\n$ a < b $")
    heading, item, code, math = list(tree)
    assert tree.get("class") == "visual-editor"
    assert heading.tag == "h2"
    assert heading.get("data-level") == "2"
    assert heading.get("data-line") == "1"
    assert item.get("data-type") == "numbered"
    assert item.get("data-num") == "5"
    assert item[0].text == "5."
    assert code.get("data-lang") == "rust"
    assert code.find("code").text == "fn main() {}"
    assert code.get("data-line") == "3"
    assert math.get("data-math") == "a < b"
    assert math.get("data-line") == "6"


def test_tree_renders_inline_elements():
    tree = tree_builder.to_tree("*b* _i_ `c` #sub[2] #super[3] #underline[u] #strike[s] <lbl> @lbl #lorem(5)")
    paragraph = tree[0]
    classes = [child.get("class") for child in paragraph]
    assert classes == [
        "visual-bold",
        "visual-italic",
        "visual-inline-code",
        "visual-sub",
        "visual-super",
        "visual-underline",
        "visual-strike",
        "visual-label",
        "visual-ref",
        "visual-function",
    ]
    assert paragraph[-1].tail is None
    assert paragraph[-1].text == "#lorem(5)"


def test_script_text_is_never_markup():
    html = tree_builder.to_html("<script>alert(1)</script>")
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_control_characters_do_not_break_the_tree():
    tree = tree_builder.to_tree("a\x00b\x0cc")
    assert tree[0].text == "a\ufffdb\ufffdc"


@pytest.mark.parametrize("char", ["\ufffe", "\uffff", "\ud800"])
def test_noncharacters_and_surrogates_are_replaced(char):
    tree = tree_builder.to_tree(f"a{char}b\n```{char}\n{char}\n```")
    assert tree[0].text == "a\ufffdb"
    assert tree[1].get("data-lang") == "\ufffd"
    assert tree[1][0].text == "\ufffd"
    assert tree_serializer.to_markup(tree) == "a\ufffdb\n```\ufffd\n\ufffd\n```"


def test_empty_source_is_one_paragraph_break():
    document = tree_builder.build_document("")
    assert [block.kind for block in document.blocks] == [ParagraphBreak()]
