from pathlib import Path

import pytest

from TypstBridge import cli


def test_markup_to_html_and_back(tmp_path: Path):
    source = tmp_path / "paper.typ"
    source.write_text("= Intro\nSome *bold* text.\n- point", encoding="utf-8")

    assert cli.main([str(source)]) == 0
    html_path = tmp_path / "paper.html"
    html_text = html_path.read_text(encoding="utf-8")
    assert 'class="visual-h1"' in html_text
    assert 'data-type="bullet"' in html_text

    out = tmp_path / "out"
    out.mkdir()
    assert cli.main([str(html_path), "-o", str(out)]) == 0
    assert (out / "paper.typ").read_text(encoding="utf-8") == "= Intro\nSome *bold* text.\n- point"


def test_check_reports_stable_round_trip(tmp_path: Path):
    source = tmp_path / "doc.typ"
    source.write_text("a\n\n\n\nb", encoding="utf-8")
    assert cli.main([str(source), "--check"]) == 0
    assert not (tmp_path / "doc.html").exists()


def test_config_and_flag_precedence(tmp_path: Path):
    config = tmp_path / "bridge.yaml"
    config.write_text("max_heading_level: 2\ncollapse_blank_lines: true\n", encoding="utf-8")
    source = tmp_path / "doc.typ"
    source.write_text("=== deep", encoding="utf-8")

    cli.main([str(source), "--config", str(config)])
    assert "visual-h3" not in (tmp_path / "doc.html").read_text(encoding="utf-8")

    cli.main([str(source), "--config", str(config), "--max-heading-level", "3"])
    assert "visual-h3" in (tmp_path / "doc.html").read_text(encoding="utf-8")


def test_no_collapse_flag(tmp_path: Path):
    source = tmp_path / "tree.html"
    source.write_text(
        '<p>a</p><div class="visual-paragraph-break"></div><div class="visual-paragraph-break"></div><p>b</p>',
        encoding="utf-8",
    )
    target = tmp_path / "kept.typ"
    cli.main([str(source), "-o", str(target), "--no-collapse"])
    assert target.read_text(encoding="utf-8") == "a\n\n\nb"


def test_missing_input(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        cli.main([str(tmp_path / "nope.typ")])
