"""
两阶段生成结果合并
第二阶段（续写请求）的输出可能重复携带文档级包裹标签和样式块，合并前需要去除
"""

import logging
import re
from typing import Optional

from .fence_stripper import strip_code_fences
from .normalizer import normalize_html_basics
from .profile import SafetyProfile, DEFAULT_PROFILE
from .tag_balancer import balance_basic_tags

logger = logging.getLogger(__name__)

DOCUMENT_WRAPPER_PATTERNS = [
    re.compile(r"^\s*<!DOCTYPE[^>]*>", re.IGNORECASE),
    re.compile(r"^\s*<html\b[^>]*>", re.IGNORECASE),
    re.compile(r"</html\s*>\s*$", re.IGNORECASE),
    re.compile(r"^\s*<head\b[^>]*>[\s\S]*?</head\s*>", re.IGNORECASE),
    re.compile(r"^\s*<body\b[^>]*>", re.IGNORECASE),
    re.compile(r"</body\s*>\s*$", re.IGNORECASE),
]
STYLE_BLOCK = re.compile(r"<style\b[^>]*>[\s\S]*?</style\s*>", re.IGNORECASE)


def strip_document_wrappers(fragment: Optional[str]) -> str:
    """去除续写片段中的 <!DOCTYPE>、<html>、<head>、<body> 包裹以及所有 <style> 块"""
    cleaned = strip_code_fences(fragment)
    for pattern in DOCUMENT_WRAPPER_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    cleaned = STYLE_BLOCK.sub("", cleaned)
    return cleaned.strip()


def merge_second_request_html(
    first_html: Optional[str],
    second_html: Optional[str],
    profile: SafetyProfile = DEFAULT_PROFILE
) -> str:
    """
    把第一阶段的最终结果与第二阶段的原始输出拼接成一份文档

    第一阶段结果先补齐标签，拼接后再整体规整并补齐，
    因此合并结果本身仍然可以作为安全处理流水线的输入。

    Args:
        first_html: 第一阶段的最终 HTML
        second_html: 第二阶段的原始输出
        profile: 安全处理配置

    Returns:
        合并后的 HTML
    """
    if not first_html and not second_html:
        return ""

    cleaned_first = balance_basic_tags((first_html or "").strip(), profile)
    cleaned_second = strip_document_wrappers(second_html)

    logger.debug(
        f"合并两阶段 HTML: 第一阶段 {len(cleaned_first)} 字符, "
        f"第二阶段 {len(second_html or '')} → {len(cleaned_second)} 字符"
    )

    merged = cleaned_first + cleaned_second
    return balance_basic_tags(normalize_html_basics(merged), profile)
