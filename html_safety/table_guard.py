"""
表格内部检测与切点重定位

切点一旦落在未闭合的表格内部，客户端后续追加的内容会被渲染进这个表格，
因此切点必须移动到表格之外。嵌套表格按深度追踪，切点总是移出最外层未闭合的表格。
"""

import logging
from typing import List, Optional, Tuple

from .profile import SafetyProfile, DEFAULT_PROFILE

logger = logging.getLogger(__name__)


def find_unclosed_table_start(html: str, profile: SafetyProfile = DEFAULT_PROFILE) -> Optional[int]:
    """
    返回最外层未闭合表格的起始位置

    多余的 </table>（没有对应的开始标签）不计入深度。

    Returns:
        起始位置，不存在未闭合表格时返回 None
    """
    depth = 0
    outer_start = None
    for start, _end, delta in profile.tag_events(html, profile.table_tag):
        if delta > 0:
            if depth == 0:
                outer_start = start
            depth += 1
        elif depth > 0:
            depth -= 1
    return outer_start if depth > 0 else None


def find_matching_table_close(
    html: str,
    table_start: int,
    profile: SafetyProfile = DEFAULT_PROFILE
) -> Optional[Tuple[int, int]]:
    """从 table_start 处的开始标签向后查找与之配对的 </table>，返回 (start, end)"""
    depth = 0
    for start, end, delta in profile.tag_events(html[table_start:], profile.table_tag):
        depth += delta
        if depth == 0:
            return table_start + start, table_start + end
        if depth < 0:
            depth = 0
    return None


def find_unclosed_subtags(region: str, profile: SafetyProfile = DEFAULT_PROFILE) -> List[str]:
    """返回区域内开始标签多于结束标签的表格子标签"""
    unclosed = []
    for tag in profile.table_subtags:
        opened = len(profile.open_pattern(tag).findall(region))
        closed = len(profile.close_pattern(tag).findall(region))
        if opened > closed:
            unclosed.append(tag)
    return unclosed


def is_inside_unclosed_table(html: Optional[str], cut_index: int, profile: SafetyProfile = DEFAULT_PROFILE) -> bool:
    """
    判断 html[:cut_index] 是否结束于未闭合的表格内部

    Args:
        html: HTML 文本
        cut_index: 前缀长度
        profile: 安全处理配置

    Returns:
        True 表示切点位于表格内部
    """
    prefix = (html or "")[:max(0, cut_index)]

    table_start = find_unclosed_table_start(prefix, profile)
    if table_start is None:
        return False

    # 子标签是否闭合不影响结果，只用于日志
    open_subtags = find_unclosed_subtags(prefix[table_start:], profile)
    logger.debug(f"切点位于未闭合的表格内: 表格开始 {table_start}, 未闭合子标签 {open_subtags}")
    return True


def move_cut_outside_table(html: Optional[str], cut_index: int, profile: SafetyProfile = DEFAULT_PROFILE) -> int:
    """
    把落在表格内部的切点移动到表格之外

    - 表格在切点之前闭合且闭合后没有悬空的子标签：移动到 </table> 之后
    - 否则：退回到表格开始位置，整个未完成的表格被丢弃

    Args:
        html: HTML 文本
        cut_index: 候选切点
        profile: 安全处理配置

    Returns:
        新的切点
    """
    s = html or ""
    if cut_index < 0:
        return cut_index
    if not is_inside_unclosed_table(s, cut_index, profile):
        return cut_index

    table_start = find_unclosed_table_start(s[:cut_index], profile)
    if table_start is None:
        return cut_index

    close = find_matching_table_close(s, table_start, profile)
    if close is not None and close[0] < cut_index:
        close_end = close[1]
        remaining = find_unclosed_subtags(s[close_end:cut_index], profile)
        if not remaining:
            logger.debug(f"切点移到表格闭合之后: {cut_index} → {close_end}")
            return close_end
        logger.debug(f"表格闭合后仍有未闭合的子标签 {remaining}，切点退回表格开始: {cut_index} → {table_start}")
        return table_start

    logger.debug(f"切点退回未闭合表格的开始位置: {cut_index} → {table_start}")
    return table_start
