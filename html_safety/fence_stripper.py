"""去除 LLM 输出外层的代码块包裹（```html ... ```）"""

import re
from typing import Optional

HTML_FENCE_PATTERN = re.compile(r"```html\s*([\s\S]*?)\s*```", re.IGNORECASE)
ANY_FENCE_PATTERN = re.compile(r"```\s*([\s\S]*?)\s*```")


def strip_code_fences(text: Optional[str]) -> str:
    """
    提取代码块内部的 HTML

    优先取标注为 html 的代码块，其次取任意代码块，都没有时返回去除首尾空白的原文。

    Args:
        text: LLM 原始输出

    Returns:
        代码块内部内容
    """
    html = (text or "").strip()

    match = HTML_FENCE_PATTERN.search(html)
    if match:
        return match.group(1).strip()

    match = ANY_FENCE_PATTERN.search(html)
    if match:
        return match.group(1).strip()

    return html
