"""
运势报告路由
提供报告流式生成（SSE）、两阶段结果合并和安全截断接口
"""

import json
from typing import List, Dict, Any, Optional, Iterator
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from loguru import logger

from html_safety import (
    NO_CUT,
    balance_basic_tags,
    find_safe_cut,
    merge_second_request_html,
    prepare_html,
)
from llm_api import llm_client
from llm_api.prompt_templates import ReportPromptTemplates
from report_stream import ReportStreamSession

# 创建路由器
router = APIRouter(prefix="/api/report", tags=["report"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # 禁用 nginx 缓冲
}


# ==================== Pydantic Models ====================

class DetailMenu(BaseModel):
    """详细菜单"""
    detail_menu: str = ""
    interpretation_tool: str = ""
    char_count: Optional[int] = None


class MenuSubtitle(BaseModel):
    """小标题，标题形如 1-2. xxx"""
    subtitle: str
    interpretation_tool: str = ""
    char_count: Optional[int] = None
    thumbnail: str = ""
    detail_menus: List[DetailMenu] = Field(default_factory=list)
    detail_menu_char_count: Optional[int] = None


class MenuItem(BaseModel):
    """菜单"""
    title: str = ""
    thumbnail: str = ""


class ReportRequest(BaseModel):
    """报告生成请求"""
    role_prompt: str = ""
    restrictions: str = ""
    menu_subtitles: List[MenuSubtitle] = Field(default_factory=list)
    menu_items: List[MenuItem] = Field(default_factory=list)
    user_info: Dict[str, Any] = Field(default_factory=dict)
    partner_info: Dict[str, Any] = Field(default_factory=dict)
    model: Optional[str] = None
    is_second_request: bool = False
    completed_subtitles: List[str] = Field(default_factory=list)
    completed_subtitle_indices: List[int] = Field(default_factory=list)
    remaining_subtitle_indices: List[int] = Field(default_factory=list)


class MergeRequest(BaseModel):
    """两阶段结果合并请求"""
    first_html: str = ""
    second_html: str = ""


class MergeResponse(BaseModel):
    html: str


class SafeTrimRequest(BaseModel):
    """安全截断请求"""
    html: str = ""


class SafeTrimResponse(BaseModel):
    html: str
    cut_index: int


# ==================== Helpers ====================

def sse_event(payload: Dict[str, Any]) -> str:
    """按照标准 SSE 格式编码一个事件: data: {...}\\n\\n"""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def _stream_report(
    session: ReportStreamSession,
    first_event: Optional[Dict[str, Any]],
    events: Iterator[Dict[str, Any]],
    is_second_request: bool
) -> Iterator[str]:
    """
    SSE 事件生成器

    事件顺序: start → chunk* (穿插 safe_html) → [warning] → [partial_done] → done
    """
    yield sse_event({"type": "start"})

    def upstream():
        if first_event is not None:
            yield first_event
        yield from events

    try:
        for event in upstream():
            if event.get("type") == "finish":
                session.record_upstream_finish(event.get("finish_reason"))
                continue
            if event.get("type") != "text":
                continue

            if not session.append(event.get("text")):
                continue

            yield sse_event({
                "type": "chunk",
                "text": event["text"],
                "accumulatedLength": session.accumulated_length,
            })

            if session.exceeds_max_chars():
                logger.warning(f"⚠️ 输出超过 {session.max_chars} 字符，停止读取上游输出")
                break

            if session.should_check_completion():
                if session.check_completion():
                    break
                yield sse_event({"type": "safe_html", "html": session.safe_snapshot()})

    except Exception as e:
        message = str(e) or "读取上游输出时发生错误"
        session.record_error(message)
        logger.error(f"❌ Stream error: {message}")

        if not session.accumulated_text.strip():
            yield sse_event({"type": "error", "error": message})
            return

        yield sse_event({
            "type": "warning",
            "message": "读取上游输出时发生错误，继续发送已收到的内容",
        })

    finally:
        # 提前结束时关闭上游流，释放到模型服务的连接
        close = getattr(events, "close", None)
        if close is not None:
            close()

    try:
        outcome = session.finalize()
    except Exception as e:
        logger.exception(f"❌ 报告结果处理失败: {e}")
        yield sse_event({"type": "error", "error": str(e)})
        return

    if outcome.needs_continuation and not is_second_request:
        yield sse_event(outcome.to_partial_done_payload())

    logger.info(
        f"📤 报告生成结束: finishReason={outcome.finish_reason}, "
        f"上游 finishReason={session.upstream_finish_reason}, "
        f"isTruncated={outcome.is_truncated}, 长度={len(outcome.html)}"
    )
    yield sse_event(outcome.to_done_payload())


# ==================== API Routes ====================

@router.post("/stream")
def stream_report(request: ReportRequest):
    """
    流式生成运势报告（SSE）

    处理流程：
    1. 校验请求并生成提示词
    2. 建立上游流式请求（失败时返回 500）
    3. 逐个推送 chunk，定期推送安全截断后的 HTML
    4. 所有小标题完成时提前结束
    5. 未完成时截断到最后一个完成的项目，返回完成列表供第二阶段请求使用
    """
    if not request.role_prompt or not request.menu_subtitles:
        raise HTTPException(status_code=400, detail="Invalid request format")

    try:
        menu_subtitles = [subtitle.model_dump() for subtitle in request.menu_subtitles]
        system_prompt, user_prompt = ReportPromptTemplates.build_report_prompt(
            role_prompt=request.role_prompt,
            menu_subtitles=menu_subtitles,
            menu_items=[item.model_dump() for item in request.menu_items],
            restrictions=request.restrictions,
            user_info=request.user_info,
            partner_info=request.partner_info,
            is_second_request=request.is_second_request,
            completed_subtitles=request.completed_subtitles,
        )

        session = ReportStreamSession(
            menu_subtitles=menu_subtitles,
            is_second_request=request.is_second_request,
            completed_subtitle_indices=request.completed_subtitle_indices,
            remaining_subtitle_indices=request.remaining_subtitle_indices,
        )

        logger.info(
            f"📝 报告生成请求: {len(menu_subtitles)} 个小标题, "
            f"第二阶段={request.is_second_request}"
        )

        client = llm_client.get_llm_client()
        events = client.stream_chat_with_system(system_prompt, user_prompt, model=request.model)
        # 先取第一个事件，上游请求失败时还能返回普通的错误响应
        first_event = next(events, None)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"❌ 流式请求建立失败: {e}")
        raise HTTPException(status_code=500, detail=f"流式请求建立失败: {str(e)}")

    return StreamingResponse(
        _stream_report(session, first_event, events, request.is_second_request),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/merge", response_model=MergeResponse)
async def merge_report(request: MergeRequest):
    """合并第一阶段和第二阶段的报告 HTML"""
    try:
        html = merge_second_request_html(request.first_html, request.second_html)
        logger.info(
            f"🔗 合并报告: {len(request.first_html)} + {len(request.second_html)} → {len(html)} 字符"
        )
        return MergeResponse(html=html)
    except Exception as e:
        logger.exception(f"❌ 合并报告失败: {e}")
        raise HTTPException(status_code=500, detail=f"合并报告失败: {str(e)}")


@router.post("/safe-trim", response_model=SafeTrimResponse)
async def safe_trim(request: SafeTrimRequest):
    """
    把 HTML 截断到最后一个完成的项目之后，并补齐未闭合标签

    cut_index 为在清理后的 HTML 中的截断位置，-1 表示没有截断
    """
    try:
        html = prepare_html(request.html)
        cut_index = find_safe_cut(html)
        trimmed = html if cut_index == NO_CUT else html[:cut_index]
        return SafeTrimResponse(html=balance_basic_tags(trimmed), cut_index=cut_index)
    except Exception as e:
        logger.exception(f"❌ 安全截断失败: {e}")
        raise HTTPException(status_code=500, detail=f"安全截断失败: {str(e)}")
