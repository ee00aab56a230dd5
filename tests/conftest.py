"""
Pytest 配置与公共 fixtures
"""

import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

# 添加项目根目录到 Python 路径
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from html_safety import DEFAULT_PROFILE  # noqa: E402


FIRST_SECTION = (
    '<!-- ITEM_START: 1-1 -->'
    '<div class="subtitle-section">'
    '<h3 class="subtitle-title">1-1. 总体运势</h3>'
    '<div class="subtitle-content">今年整体运势平稳上升，下半年会出现新的机会，适合主动出击。</div>'
    '</div>'
    '<!-- ITEM_END: 1-1 -->'
)

SECOND_SECTION = (
    '<!-- ITEM_START: 1-2 -->'
    '<div class="subtitle-section">'
    '<h3 class="subtitle-title">1-2. 财运</h3>'
    '<div class="subtitle-content">财运方面需要稳健，不宜进行高风险投资，储蓄会带来安全感。</div>'
    '</div>'
    '<!-- ITEM_END: 1-2 -->'
)

SECOND_SECTION_PARTIAL = (
    '<!-- ITEM_START: 1-2 -->'
    '<div class="subtitle-section">'
    '<h3 class="subtitle-title">1-2. 财运</h3>'
    '<div class="subtitle-content">财运方面需要稳健，<table><tr><td>月份</td><td>运'
)

MENU_OPEN = '<div class="menu-section"><h2 class="menu-title">2026 年运势</h2>'


@pytest.fixture
def profile():
    return DEFAULT_PROFILE


@pytest.fixture
def menu_subtitles() -> List[Dict[str, Any]]:
    return [
        {"subtitle": "1-1. 总体运势"},
        {"subtitle": "1-2. 财运"},
    ]


@pytest.fixture
def complete_report() -> str:
    return MENU_OPEN + FIRST_SECTION + SECOND_SECTION + "</div>"


@pytest.fixture
def partial_report() -> str:
    return MENU_OPEN + FIRST_SECTION + SECOND_SECTION_PARTIAL


@pytest.fixture
def html_corpus() -> List[str]:
    """各种在任意位置被截断的流式输出片段"""
    full = MENU_OPEN + FIRST_SECTION + SECOND_SECTION + "</div>"
    fragments = [
        "",
        "plain text without tags",
        "<div>hello<!-- ITEM_END:1 --> world<table><tr><td>x",
        "<div><table><tr><td>a</td></tr></table><table><tr><td>partial",
        "```html\n<div>A</div>\n```",
        "<div>a</div><div>b",
        "<div><table><thead><tr><th>h</th></tr></thead><tbody><tr><td>1",
        "<div><table><tr><td><table><tr><td>inner</td></tr></table>",
        "</div></td>stray closings<div>x",
        "<div>**bold**<br><br><br>text\n<table><tr><td>c</td></tr></table>",
        "<div>x<!-- ITEM_END: 1 --><div>y<!-- ITEM_E",
        "<div><p>para</p>\n\n  <table><tr><td>cell",
        MENU_OPEN + FIRST_SECTION + SECOND_SECTION_PARTIAL,
    ]
    # 完整报告按不同长度截断
    fragments += [full[:n] for n in range(0, len(full), 37)]
    return fragments
