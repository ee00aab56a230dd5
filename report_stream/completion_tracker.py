"""
小标题完成情况跟踪
根据已生成 HTML 中完整闭合的 subtitle-section / detail-menu-section 判定哪些小标题已完成
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from config import StreamConfig
from html_safety import SafetyProfile, DEFAULT_PROFILE

logger = logging.getLogger(__name__)

SECTION_START = re.compile(
    r'<div[^>]*class="[^"]*(subtitle-section|detail-menu-section)[^"]*"[^>]*>', re.IGNORECASE
)
SUBTITLE_SECTION_START = re.compile(r'<div[^>]*class="[^"]*subtitle-section[^"]*"[^>]*>', re.IGNORECASE)
SUBTITLE_TITLE = re.compile(r'<h3[^>]*class="[^"]*subtitle-title[^"]*"[^>]*>([\s\S]*?)</h3>', re.IGNORECASE)
DETAIL_MENU_TITLE = re.compile(
    r'<(h3|div)[^>]*class="[^"]*detail-menu-title[^"]*"[^>]*>([\s\S]*?)</\1>', re.IGNORECASE
)
CONTENT_BLOCK = re.compile(
    r'<div[^>]*class="[^"]*(?:subtitle-content|detail-menu-content)[^"]*"[^>]*>([\s\S]*?)</div>',
    re.IGNORECASE
)
SUBTITLE_NUMBER = re.compile(r"^(\d+)-(\d+)")
ANY_TAG = re.compile(r"<[^>]+>")

# 识别最后一个小标题时只看开头这一段
SECTION_HEAD_CHARS = 1000


def find_div_block_end(html: str, start: int, profile: SafetyProfile = DEFAULT_PROFILE) -> int:
    """
    从 start 处的 <div> 开始按深度查找与之配对的 </div>

    Returns:
        配对 </div> 之后的位置，未闭合时返回 -1
    """
    depth = 0
    for _start, end, delta in profile.tag_events(html[start:], profile.container_tag):
        depth += delta
        if depth == 0:
            return start + end
        if depth < 0:
            return -1
    return -1


def extract_closed_sections(html: str) -> List[Tuple[str, str]]:
    """
    提取所有已完整闭合的小标题 / 详细菜单区块

    Returns:
        (区块类型, 区块 HTML) 列表，区块类型为 subtitle-section 或 detail-menu-section
    """
    sections = []
    for match in SECTION_START.finditer(html or ""):
        end = find_div_block_end(html, match.start())
        if end > match.start():
            sections.append((match.group(1).lower(), html[match.start():end]))
    return sections


def _plain_text(fragment: str) -> str:
    return ANY_TAG.sub("", fragment).strip()


def _title_matches(kind: str, section: str, candidates: List[str]) -> bool:
    if kind == "detail-menu-section":
        title_match = DETAIL_MENU_TITLE.search(section)
        title_text = _plain_text(title_match.group(2)) if title_match else ""
    else:
        title_match = SUBTITLE_TITLE.search(section)
        title_text = _plain_text(title_match.group(1)) if title_match else ""

    if not title_text:
        return False
    return any(candidate and candidate in title_text for candidate in candidates)


def parse_completed_subtitles(
    html: str,
    menu_subtitles: List[Dict[str, Any]],
    min_subtitle_len: Optional[int] = None,
    min_detail_len: Optional[int] = None
) -> Tuple[List[int], List[int]]:
    """
    判定已完成的小标题

    小标题标题形如 "1-2. xxx"。对应区块的标题包含完整标题、去掉句点的标题或编号 "1-2"，
    并且正文长度超过阈值时视为已完成。

    Args:
        html: 已去除代码块包裹的 HTML
        menu_subtitles: 小标题列表，每项包含 "subtitle" 字段
        min_subtitle_len: 小标题正文最小长度
        min_detail_len: 详细菜单正文最小长度

    Returns:
        (已完成的小标题下标列表, 已完成的菜单下标列表)
    """
    if min_subtitle_len is None:
        min_subtitle_len = StreamConfig.MIN_TEXT_LEN_SUBTITLE
    if min_detail_len is None:
        min_detail_len = StreamConfig.MIN_TEXT_LEN_DETAIL

    sections = extract_closed_sections(html)
    completed_subtitles: List[int] = []
    completed_menus: List[int] = []

    for index, subtitle in enumerate(menu_subtitles):
        title = (subtitle.get("subtitle") or "").strip()
        number_match = SUBTITLE_NUMBER.match(title)
        if not number_match:
            continue

        menu_number = int(number_match.group(1))
        candidates = [title, title.replace(".", ""), f"{number_match.group(1)}-{number_match.group(2)}"]

        for kind, section in sections:
            if not _title_matches(kind, section, candidates):
                continue

            content_match = CONTENT_BLOCK.search(section)
            min_len = min_detail_len if kind == "detail-menu-section" else min_subtitle_len
            if content_match and len(content_match.group(1).strip()) > min_len:
                completed_subtitles.append(index)
                if menu_number - 1 not in completed_menus:
                    completed_menus.append(menu_number - 1)
                break

    logger.debug(
        f"解析完成情况: {len(sections)} 个闭合区块, "
        f"已完成 {len(completed_subtitles)}/{len(menu_subtitles)} 个小标题"
    )
    return completed_subtitles, completed_menus


def remove_incomplete_subtitle(
    html: str,
    completed_indices: List[int],
    menu_subtitles: List[Dict[str, Any]]
) -> List[int]:
    """
    截断后的 HTML 中最后一个 subtitle-section 未闭合时，把它对应的小标题从完成列表中移除

    无法识别是哪个小标题时，移除完成列表中下标最大的一项。

    Args:
        html: 截断后、补齐标签之前的 HTML
        completed_indices: 已完成的小标题下标
        menu_subtitles: 小标题列表

    Returns:
        修正后的完成列表
    """
    if not html or not completed_indices:
        return completed_indices

    starts = list(SUBTITLE_SECTION_START.finditer(html))
    if not starts:
        return completed_indices

    last_start = starts[-1].start()
    if find_div_block_end(html, last_start) != -1:
        return completed_indices

    head = html[last_start:last_start + SECTION_HEAD_CHARS]
    last_index = -1
    for index, subtitle in enumerate(menu_subtitles):
        title = (subtitle.get("subtitle") or "").strip()
        if not title:
            continue
        pattern = re.compile(
            r'<h3[^>]*class="[^"]*subtitle-title[^"]*"[^>]*>[\s\S]*?' + re.escape(title),
            re.IGNORECASE
        )
        if pattern.search(head):
            last_index = index

    if last_index >= 0:
        if last_index in completed_indices:
            logger.info(f"✂️ 最后一个小标题未闭合，移出完成列表: {last_index}")
            return [idx for idx in completed_indices if idx != last_index]
        return completed_indices

    highest = max(completed_indices)
    logger.info(f"✂️ 无法识别未闭合的小标题，移出完成列表中的最后一项: {highest}")
    return [idx for idx in completed_indices if idx != highest]
