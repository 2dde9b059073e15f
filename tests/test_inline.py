from TypstBridge.inline import inline_to_markup, resolve_inline
from TypstBridge.model import (
    Bold,
    FunctionCall,
    InlineCode,
    Italic,
    Label,
    Link,
    PlainText,
    Reference,
    Subscript,
)


def test_plain_text_only():
    assert resolve_inline("just words") == [PlainText("just words")]
    assert resolve_inline("") == []


def test_bold_and_italic():
    assert resolve_inline("a *b* c _d_") == [
        PlainText("a "),
        Bold([PlainText("b")]),
        PlainText(" c "),
        Italic([PlainText("d")]),
    ]


def test_unmatched_delimiters_stay_literal():
    assert resolve_inline("2 * 3 = 6 and snake_case") == [PlainText("2 * 3 = 6 and snake_case")]


def test_matched_ranges_are_not_rescanned():
    # The bold claims `*_x_*`, so the italic rule never sees its underscores.
    assert resolve_inline("*_x_*") == [Bold([PlainText("_x_")])]


def test_link_and_function_call():
    spans = resolve_inline('Go #link("https://example.com/?a=1&b=2")[home] or #lorem(20)')
    assert spans == [
        PlainText("Go "),
        Link("https://example.com/?a=1&b=2", [PlainText("home")]),
        PlainText(" or "),
        FunctionCall("lorem", "20"),
    ]


def test_bracket_functions_labels_and_references():
    spans = resolve_inline("H#sub[2]O <eq> see @eq and `raw`")
    assert spans == [
        PlainText("H"),
        Subscript([PlainText("2")]),
        PlainText("O "),
        Label("eq"),
        PlainText(" see "),
        Reference("eq"),
        PlainText(" and "),
        InlineCode("raw"),
    ]


def test_markup_round_trip_of_mixed_line():
    line = 'A *b* _c_ `d` $e$ #link("f")[g] #h(i) #sub[j] #super[k] #underline[l] #strike[m] <n> @o'
    assert inline_to_markup(resolve_inline(line)) == line


def test_underscore_in_link_url_still_round_trips():
    line = '#link("https://a_b_c.org")[site]'
    assert inline_to_markup(resolve_inline(line)) == line
