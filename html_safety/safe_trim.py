"""
流式输出的安全截断
只保留到最后一个已完成项目为止的内容，绝不在表格内部截断，最后补齐标签
"""

import logging
from typing import Optional

from .boundary_scanner import NO_CUT, find_cut_index
from .fence_stripper import strip_code_fences
from .normalizer import normalize_html_basics
from .profile import SafetyProfile, DEFAULT_PROFILE
from .table_guard import move_cut_outside_table
from .tag_balancer import balance_basic_tags

logger = logging.getLogger(__name__)


def prepare_html(raw_html: Optional[str]) -> str:
    """去除代码块包裹并规整空白"""
    return normalize_html_basics(strip_code_fences(raw_html))


def find_safe_cut(html: str, profile: SafetyProfile = DEFAULT_PROFILE) -> int:
    """
    在规整后的 HTML 中计算最终切点

    Returns:
        需要截断时返回切点，否则返回 NO_CUT
    """
    cut = find_cut_index(html, profile)
    if cut == NO_CUT or cut <= 0 or cut >= len(html):
        return NO_CUT
    return move_cut_outside_table(html, cut, profile)


def safe_trim_to_completed_boundary(raw_html: Optional[str], profile: SafetyProfile = DEFAULT_PROFILE) -> str:
    """
    截断到最后一个已完成的项目边界并修复标签

    没有切点时不截断，但仍然补齐标签，保证正在生成的片段在结构上是闭合的。

    Args:
        raw_html: 当前累积的原始输出
        profile: 安全处理配置

    Returns:
        可以直接发送给客户端的 HTML
    """
    html = prepare_html(raw_html)
    if not html:
        return ""

    cut = find_safe_cut(html, profile)
    if cut != NO_CUT:
        logger.debug(f"安全截断: {len(html)} → {cut} 字符")
        html = html[:cut]

    return balance_basic_tags(html, profile)
