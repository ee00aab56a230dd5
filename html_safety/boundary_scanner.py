"""
边界扫描：定位缓冲区中最后一个已完成项目的结束位置
"""

import logging
from typing import Optional

from .profile import SafetyProfile, DEFAULT_PROFILE

logger = logging.getLogger(__name__)

# 没有安全切点：不截断
NO_CUT = -1


def find_safe_cut_index_by_markers(html: Optional[str], profile: SafetyProfile = DEFAULT_PROFILE) -> int:
    """
    返回最后一个完整 ITEM_END 标记的 "-->" 之后的位置

    末尾尚未写完的标记会被跳过，继续向前寻找完整的标记。

    Args:
        html: 规整后的 HTML
        profile: 安全处理配置

    Returns:
        切点位置，找不到完整标记时返回 NO_CUT
    """
    s = html or ""
    search_end = len(s)

    while search_end > 0:
        idx = s.rfind(profile.item_end, 0, search_end)
        if idx < 0:
            break
        close = s.find(profile.marker_close, idx + len(profile.item_end))
        if close >= 0:
            return close + len(profile.marker_close)
        search_end = idx

    return NO_CUT


def find_fallback_cut_index(html: Optional[str], profile: SafetyProfile = DEFAULT_PROFILE) -> int:
    """没有标记时，保守地取最后一个 </div> 之后的位置"""
    s = html or ""
    last = None
    for last in profile.close_pattern(profile.container_tag).finditer(s):
        pass
    if last is None:
        return NO_CUT
    return last.end()


def find_cut_index(html: Optional[str], profile: SafetyProfile = DEFAULT_PROFILE) -> int:
    """
    计算候选切点：优先使用 ITEM_END 标记，其次回退到最后一个 </div>

    Returns:
        切点位置或 NO_CUT
    """
    cut = find_safe_cut_index_by_markers(html, profile)
    if cut != NO_CUT:
        logger.debug(f"按 ITEM_END 标记截断: 位置 {cut}")
        return cut

    cut = find_fallback_cut_index(html, profile)
    if cut != NO_CUT:
        logger.debug(f"没有完整的 ITEM_END 标记，回退到最后一个 </div>: 位置 {cut}")
    else:
        logger.debug("未找到安全切点")
    return cut
