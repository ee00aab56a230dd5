"""
Prompt 模板：运势报告生成的 LLM 提示词模板
包含角色设定、小标题与解析工具、HTML 结构约束以及 ITEM_START / ITEM_END 标记要求
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from config import StreamConfig
from html_safety import SafetyProfile, DEFAULT_PROFILE

SUBTITLE_NUMBER = re.compile(r"^(\d+)-(\d+)")

# 详细菜单未设置字数时使用的默认值
DEFAULT_DETAIL_MENU_CHAR_COUNT = 500


class ReportPromptTemplates:
    """运势报告提示词模板集合"""

    @staticmethod
    def get_system_prompt(role_prompt: str, restrictions: str = "") -> str:
        """
        获取系统提示词

        Args:
            role_prompt: 角色设定，例如 "经验丰富的命理师"
            restrictions: 额外的禁止事项

        Returns:
            系统提示词
        """
        restriction_block = f"\n## 禁止事项\n{restrictions.strip()}\n" if restrictions and restrictions.strip() else ""

        return f"""你是{role_prompt}。

## 任务说明
根据用户信息，对给定商品菜单下的每个小标题逐一进行解读，并以 HTML 片段的形式输出结果。
所有解读内容必须使用 {StreamConfig.REPORT_LANGUAGE} 书写。
{restriction_block}
## 输出约束
1. 只输出 HTML 片段，不要输出 <!DOCTYPE>、<html>、<head>、<body>，也不要用 ``` 代码块包裹。
2. 不要使用 Markdown 语法（例如 ** 加粗），需要强调时使用 HTML 标签。
3. 段落之间需要空行时使用 <br> 或 <p> 标签，纯文本换行不会显示为空行。
4. 表格不要嵌套，每个表格独立使用并完整闭合。
"""

    @staticmethod
    def _format_person(label: str, info: Optional[Dict[str, Any]]) -> str:
        if not info:
            return ""
        lines = [f"## {label}"]
        for key in ("name", "gender", "birth_date", "birth_hour"):
            value = info.get(key)
            if value:
                lines.append(f"- {key}: {value}")
        return "\n".join(lines) + "\n" if len(lines) > 1 else ""

    @staticmethod
    def _format_subtitle(subtitle: Dict[str, Any]) -> str:
        """渲染单个小标题及其解析工具、字数要求、缩略图和详细菜单"""
        lines = [f"- 小标题: {subtitle.get('subtitle', '')}"]

        tool = subtitle.get("interpretation_tool")
        if tool:
            lines.append(f"  - 解析工具: {tool}")

        char_count = subtitle.get("char_count")
        if char_count:
            lines.append(f"  - 字数要求: 约 {char_count} 字")

        thumbnail = subtitle.get("thumbnail")
        if thumbnail:
            lines.append(f"  - 缩略图 URL: {thumbnail}")

        detail_menus = subtitle.get("detail_menus") or []
        default_count = subtitle.get("detail_menu_char_count") or DEFAULT_DETAIL_MENU_CHAR_COUNT
        for dm_idx, detail_menu in enumerate(detail_menus, 1):
            lines.append(f"  - 详细菜单 {dm_idx}: {detail_menu.get('detail_menu', '')}")
            if detail_menu.get("interpretation_tool"):
                lines.append(f"    - 解析工具: {detail_menu['interpretation_tool']}")
            lines.append(f"    - 字数要求: 约 {detail_menu.get('char_count') or default_count} 字")

        return "\n".join(lines)

    @staticmethod
    def _group_by_menu(
        menu_items: List[Dict[str, Any]],
        menu_subtitles: List[Dict[str, Any]]
    ) -> List[Tuple[int, Dict[str, Any], List[Dict[str, Any]]]]:
        """按小标题编号 "m-n" 中的 m 把小标题归入菜单"""
        groups = []
        for menu_idx, item in enumerate(menu_items or [], 1):
            subtitles = []
            for subtitle in menu_subtitles:
                match = SUBTITLE_NUMBER.match((subtitle.get("subtitle") or "").strip())
                if match and int(match.group(1)) == menu_idx:
                    subtitles.append(subtitle)
            groups.append((menu_idx, item, subtitles))
        return groups

    @staticmethod
    def get_html_structure_prompt(is_second_request: bool, has_thumbnail: bool = False) -> str:
        """
        获取 HTML 结构说明

        Args:
            is_second_request: 是否为第二阶段请求（只生成剩余小标题）
            has_thumbnail: 菜单是否带有缩略图

        Returns:
            HTML 结构说明
        """
        subtitle_block = """<div class="subtitle-section">
  <h3 class="subtitle-title">[小标题]</h3>
  <div class="subtitle-content">[解读内容]</div>
</div>

<div class="subtitle-section">
  <h3 class="subtitle-title">[下一个小标题]</h3>
  <div class="subtitle-content">[解读内容]</div>
  <div class="detail-menu-section">
    <div class="detail-menu-title">[详细菜单标题]</div>
    <div class="detail-menu-content">[详细菜单解读内容]</div>
  </div>
</div>"""

        if is_second_request:
            return f"""## HTML 结构（第二阶段）
- 不要生成 <div class="menu-section">、<h2 class="menu-title"> 或菜单缩略图，它们已经存在。
- 只按顺序生成剩余小标题的 <div class="subtitle-section">。

{subtitle_block}
"""

        thumbnail_line = '\n  <img src="[缩略图 URL]" alt="[菜单标题]" class="menu-thumbnail" />' if has_thumbnail else ""
        indented = "\n".join("  " + line if line else line for line in subtitle_block.split("\n"))
        return f"""## HTML 结构
每个菜单按以下结构输出：

<div class="menu-section">
  <h2 class="menu-title">[菜单标题]</h2>{thumbnail_line}

{indented}
  ...
</div>
"""

    @staticmethod
    def get_marker_prompt(profile: SafetyProfile = DEFAULT_PROFILE) -> str:
        """
        获取分段标记说明，截断时只在完整的 ITEM_END 标记之后切分

        Args:
            profile: 标记与标签配置

        Returns:
            标记说明
        """
        start = profile.item_start
        end = profile.item_end
        close = profile.marker_close
        return f"""## 分段标记（必须）
每个小标题（subtitle-section）和详细菜单（detail-menu-section）前后都必须插入注释标记：
- 每个 <div class="subtitle-section"> 之前: {start} [小标题编号] {close}
- 该 subtitle-section 的 </div> 之后: {end} [小标题编号] {close}
- 每个 <div class="detail-menu-section"> 之前: {start} [小标题编号]-[详细菜单编号] {close}
- 该 detail-menu-section 的 </div> 之后: {end} [小标题编号]-[详细菜单编号] {close}

示例:
{start} 1-1 {close}
<div class="subtitle-section">
  <h3 class="subtitle-title">1-1. 小标题</h3>
  <div class="subtitle-content">解读内容...</div>
</div>
{end} 1-1 {close}
"""

    @staticmethod
    def build_report_prompt(
        role_prompt: str,
        menu_subtitles: List[Dict[str, Any]],
        menu_items: Optional[List[Dict[str, Any]]] = None,
        restrictions: str = "",
        user_info: Optional[Dict[str, Any]] = None,
        partner_info: Optional[Dict[str, Any]] = None,
        is_second_request: bool = False,
        completed_subtitles: Optional[List[str]] = None,
        profile: SafetyProfile = DEFAULT_PROFILE
    ) -> Tuple[str, str]:
        """
        生成报告的系统提示词和用户提示词

        第二阶段请求时 menu_subtitles 只包含剩余的小标题，
        completed_subtitles 为已完成小标题的标题列表。

        Args:
            role_prompt: 角色设定
            menu_subtitles: 小标题列表
            menu_items: 菜单列表，每项包含 title 和可选的 thumbnail
            restrictions: 禁止事项
            user_info: 用户信息
            partner_info: 对方信息（合盘类商品）
            is_second_request: 是否为第二阶段请求
            completed_subtitles: 已完成的小标题标题
            profile: 标记与标签配置

        Returns:
            (system_prompt, user_prompt)
        """
        system_prompt = ReportPromptTemplates.get_system_prompt(role_prompt, restrictions)

        parts = []
        if is_second_request:
            done = "\n".join(f"- {title}" for title in (completed_subtitles or [])) or "无"
            parts.append(
                "## 第二阶段请求\n"
                "这是上一次请求的延续，不要从头开始，也不要重复已完成的小标题。\n"
                f"已完成的小标题:\n{done}\n"
            )

        parts.append(ReportPromptTemplates._format_person("用户信息", user_info))
        parts.append(ReportPromptTemplates._format_person("对方信息", partner_info))

        parts.append("## 菜单与小标题\n请逐一解读以下小标题。HTML 中的小标题标题只使用这里给出的原始标题。\n")
        groups = ReportPromptTemplates._group_by_menu(menu_items or [], menu_subtitles)
        if groups:
            for menu_idx, item, subtitles in groups:
                if is_second_request and not subtitles:
                    continue
                header = f"菜单 {menu_idx}: {item.get('title', '')}"
                if item.get("thumbnail"):
                    header += f"\n缩略图 URL: {item['thumbnail']}"
                body = "\n".join(ReportPromptTemplates._format_subtitle(s) for s in subtitles)
                parts.append(f"{header}\n{body}\n")
        else:
            parts.append("\n".join(ReportPromptTemplates._format_subtitle(s) for s in menu_subtitles) + "\n")

        has_thumbnail = any(item.get("thumbnail") for item in (menu_items or []))
        parts.append(ReportPromptTemplates.get_html_structure_prompt(is_second_request, has_thumbnail))
        parts.append(ReportPromptTemplates.get_marker_prompt(profile))

        user_prompt = "\n".join(part for part in parts if part)
        return system_prompt, user_prompt


def get_report_prompts(**kwargs) -> tuple:
    """
    获取报告生成的提示词对

    Returns:
        (system_prompt, user_prompt)
    """
    return ReportPromptTemplates.build_report_prompt(**kwargs)
