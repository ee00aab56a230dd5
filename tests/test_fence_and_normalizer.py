"""
代码块去除与基础规整测试
"""

import pytest

from html_safety import normalize_html_basics, strip_code_fences


class TestStripCodeFences:
    """代码块包裹去除"""

    def test_html_fence(self):
        assert strip_code_fences("```html\n<div>A</div>\n```") == "<div>A</div>"

    def test_html_fence_is_case_insensitive(self):
        assert strip_code_fences("```HTML\n<p>x</p>\n```") == "<p>x</p>"

    def test_generic_fence(self):
        assert strip_code_fences("```\n<p>x</p>\n```") == "<p>x</p>"

    def test_surrounding_prose_is_dropped(self):
        text = "결과입니다:\n```html\n<div>A</div>\n```\n감사합니다"
        assert strip_code_fences(text) == "<div>A</div>"

    def test_html_fence_preferred_over_earlier_generic_fence(self):
        text = "```\nnote\n```\n```html\n<div>A</div>\n```"
        assert strip_code_fences(text) == "<div>A</div>"

    def test_no_fence_returns_trimmed_text(self):
        assert strip_code_fences("  <div>plain</div>\n") == "<div>plain</div>"

    def test_unterminated_fence_is_left_alone(self):
        assert strip_code_fences("```html\n<div>A") == "```html\n<div>A"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_input(self, value):
        assert strip_code_fences(value) == ""


class TestNormalizeHtmlBasics:
    """结构性空白规整"""

    def test_repeated_breaks_collapse(self):
        assert normalize_html_basics("a<br><br><br><br>b") == "a<br>b"

    def test_mixed_break_forms_collapse(self):
        assert normalize_html_basics("a<br/> <BR>\n<br />b") == "a<br>b"

    def test_single_break_kept(self):
        assert normalize_html_basics("a<br>b") == "a<br>b"

    def test_emphasis_markers_removed(self):
        assert normalize_html_basics("<p>**중요**</p>") == "<p>중요</p>"

    def test_heading_joined_with_subtitle_content(self):
        html = '<h3 class="subtitle-title">1-1</h3>\n   <div class="subtitle-content">x</div>'
        assert normalize_html_basics(html) == (
            '<h3 class="subtitle-title">1-1</h3><div class="subtitle-content">x</div>'
        )

    def test_whitespace_between_closing_tag_and_table(self):
        assert normalize_html_basics("<p>x</p>\n\n  <table>") == "<p>x</p><table>"

    def test_newline_before_table(self):
        assert normalize_html_basics("text \n<table class=\"t\">") == 'text<table class="t">'

    def test_space_between_text_and_table(self):
        assert normalize_html_basics("text   <table>") == "text<table>"

    def test_unrelated_whitespace_untouched(self):
        html = "<div>\n  <p>a b</p>\n</div>"
        assert normalize_html_basics(html) == html

    def test_thead_is_not_a_table(self):
        html = "<p>x</p> <thead>"
        assert normalize_html_basics(html) == html

    def test_none_input(self):
        assert normalize_html_basics(None) == ""

    def test_idempotent(self, html_corpus):
        for fragment in html_corpus + ["*<br>*<br>**", "a *\n*<table>", "<br>**<br>"]:
            once = normalize_html_basics(fragment)
            assert normalize_html_basics(once) == once, fragment
