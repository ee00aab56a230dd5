"""
基础 HTML 规整
清理生成过程中产生的多余空白、重复换行与残留的 Markdown 强调符号
"""

import re
from typing import Optional

EMPHASIS_MARKER = "**"

HEADING_SUBTITLE_JOIN = re.compile(
    r'(</h[1-6][^>]*>)\s+(<div[^>]*class="[^"]*subtitle-content[^"]*"[^>]*>)',
    re.IGNORECASE
)
REPEATED_BREAKS = re.compile(r"(?:<br\s*/?>\s*){2,}", re.IGNORECASE)

TABLE_OPEN = r"(<table\b[^>]*>)"
# 块级闭合标签后的任意空白
SPACE_AFTER_CLOSING_TAG = re.compile(
    r"(</(?:p|div|h[1-6]|span|li|td|th)\s*>)\s+" + TABLE_OPEN, re.IGNORECASE
)
# 含换行的空白
BREAK_BEFORE_TABLE = re.compile(r"[ \t\r\f\v]*(?:\n\s*)+" + TABLE_OPEN, re.IGNORECASE)
# 正文字符后的空白
SPACE_AFTER_TEXT = re.compile(r"([^>\s])\s+" + TABLE_OPEN, re.IGNORECASE)


def normalize_html_basics(html: Optional[str]) -> str:
    """
    规整 HTML 中的结构性空白

    强调符号最先去除，保证后续规则不会因去除符号产生新的相邻关系，
    因此重复执行结果不变。

    Args:
        html: HTML 文本

    Returns:
        规整后的 HTML
    """
    out = (html or "").replace(EMPHASIS_MARKER, "")

    out = HEADING_SUBTITLE_JOIN.sub(r"\1\2", out)
    out = REPEATED_BREAKS.sub("<br>", out)

    out = SPACE_AFTER_CLOSING_TAG.sub(r"\1\2", out)
    out = BREAK_BEFORE_TABLE.sub(r"\1", out)
    out = SPACE_AFTER_TEXT.sub(r"\1\2", out)

    return out
