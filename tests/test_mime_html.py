from __future__ import annotations

from tempmail.services.mime.html import html_to_text


def test_tags_stripped_and_whitespace_collapsed() -> None:
    assert html_to_text("<p>Hi <b>there</b></p>") == "Hi there"
    assert html_to_text("<div>\n  one\n</div><div>two</div>") == "one two"


def test_style_and_script_blocks_removed() -> None:
    html = (
        "<STYLE type='text/css'>p { color: red }</STYLE>"
        "<script>alert('x')</script><p>visible</p>"
        "<Script src=a.js>\nmore()\n</SCRIPT>"
    )
    assert html_to_text(html) == "visible"


def test_only_the_five_entities_are_unescaped() -> None:
    assert html_to_text("a&nbsp;b &amp; c &lt;d&gt; &quot;e&quot;") == 'a b & c <d> "e"'
    assert html_to_text("&copy; 2024") == "&copy; 2024"


def test_amp_produced_entities_are_not_reinterpreted() -> None:
    assert html_to_text("&amp;lt;tag&amp;gt;") == "&lt;tag&gt;"


def test_empty_input() -> None:
    assert html_to_text("") == ""
    assert html_to_text(None) == ""
