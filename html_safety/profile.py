"""
HTML 安全处理配置：标记前缀与受追踪的标签集合
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Pattern, Tuple


@dataclass(frozen=True)
class SafetyProfile:
    """
    流式 HTML 安全处理使用的不可变配置

    Attributes:
        item_start: 项目开始标记前缀
        item_end: 项目结束标记前缀
        marker_close: 标记注释的结束符
        container_tag: 容器标签（div）
        table_tag: 表格标签
        table_subtags: 表格内部标签（按闭合顺序：单元格 → 行 → 分组）
    """
    item_start: str = "<!-- ITEM_START:"
    item_end: str = "<!-- ITEM_END:"
    marker_close: str = "-->"
    container_tag: str = "div"
    table_tag: str = "table"
    table_subtags: Tuple[str, ...] = field(
        default=("td", "th", "tr", "tbody", "thead", "tfoot")
    )

    @property
    def tracked_tags(self) -> Tuple[str, ...]:
        """所有需要保持开闭数量一致的标签"""
        return (self.container_tag, self.table_tag) + self.table_subtags

    def open_pattern(self, tag: str) -> Pattern:
        return _open_tag_re(tag)

    def close_pattern(self, tag: str) -> Pattern:
        return _close_tag_re(tag)

    def close_tag(self, tag: str) -> str:
        return f"</{tag}>"

    def tag_events(self, html: str, tag: str) -> List[Tuple[int, int, int]]:
        """按出现顺序返回标签的 (start, end, +1/-1) 事件列表，+1 为开始标签"""
        events = [(m.start(), m.end(), 1) for m in self.open_pattern(tag).finditer(html)]
        events += [(m.start(), m.end(), -1) for m in self.close_pattern(tag).finditer(html)]
        events.sort()
        return events


@lru_cache(maxsize=None)
def _open_tag_re(tag: str) -> Pattern:
    # <th> 不能匹配 <thead>
    return re.compile(rf"<{re.escape(tag)}\b[^>]*>", re.IGNORECASE)


@lru_cache(maxsize=None)
def _close_tag_re(tag: str) -> Pattern:
    return re.compile(rf"</{re.escape(tag)}\s*>", re.IGNORECASE)


DEFAULT_PROFILE = SafetyProfile()
