"""
标签平衡修复
统计 div 与表格系列标签的开闭数量，在文本末尾补齐缺失的结束标签
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .profile import SafetyProfile, DEFAULT_PROFILE

logger = logging.getLogger(__name__)

# 文本末尾被截断的半个标签，例如 "<tab" 或 "<!-- ITEM_E"
DANGLING_TAG = re.compile(r"(?:<(?:[!/]|[A-Za-z])[^<>]*)+$")


@dataclass
class TagBalance:
    """单个标签的开闭计数"""
    tag: str
    opened: int
    closed: int

    @property
    def missing(self) -> int:
        return max(0, self.opened - self.closed)

    @property
    def balanced(self) -> bool:
        return self.opened == self.closed


def strip_dangling_tag(html: str) -> str:
    """去掉末尾未写完的标签片段"""
    return DANGLING_TAG.sub("", html)


def remove_orphan_closing_tags(html: str, profile: SafetyProfile = DEFAULT_PROFILE) -> str:
    """
    删除没有对应开始标签的结束标签

    例如第二阶段的片段里残留的 </div>，它要闭合的容器已经在第一阶段补齐过。
    """
    spans: List[Tuple[int, int]] = []
    for tag in profile.tracked_tags:
        depth = 0
        for start, end, delta in profile.tag_events(html, tag):
            if delta > 0:
                depth += 1
            elif depth > 0:
                depth -= 1
            else:
                spans.append((start, end))

    if not spans:
        return html

    logger.debug(f"移除多余的闭合标签: {len(spans)} 个")
    out = html
    for start, end in sorted(spans, reverse=True):
        out = out[:start] + out[end:]
    return out


def count_tag_balance(html: Optional[str], profile: SafetyProfile = DEFAULT_PROFILE) -> Dict[str, TagBalance]:
    """
    统计每个受追踪标签的开闭数量

    Returns:
        {标签名: TagBalance}
    """
    s = html or ""
    return {
        tag: TagBalance(
            tag=tag,
            opened=len(profile.open_pattern(tag).findall(s)),
            closed=len(profile.close_pattern(tag).findall(s)),
        )
        for tag in profile.tracked_tags
    }


def balance_basic_tags(html: Optional[str], profile: SafetyProfile = DEFAULT_PROFILE) -> str:
    """
    补齐缺失的结束标签

    追加顺序固定：表格子标签（单元格 → 行 → 分组）先于 </table>，</table> 先于 </div>。
    对已经平衡的文本重复执行不会追加任何内容。

    Args:
        html: HTML 文本
        profile: 安全处理配置

    Returns:
        开闭数量一致的 HTML
    """
    s = remove_orphan_closing_tags(html or "", profile)
    s = strip_dangling_tag(s)

    counters = count_tag_balance(s, profile)
    closing_order = profile.table_subtags + (profile.table_tag, profile.container_tag)

    closings = []
    for tag in closing_order:
        missing = counters[tag].missing
        if missing:
            closings.append(profile.close_tag(tag) * missing)

    if closings:
        missing_counts = {tag: counters[tag].missing for tag in closing_order if counters[tag].missing}
        logger.debug(f"补齐闭合标签: {missing_counts}")

    return s + "".join(closings)
