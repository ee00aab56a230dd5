"""
报告流式生成会话
累积上游模型输出的 chunk，按固定间隔检查完成情况，并在结束时给出安全截断后的最终结果
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from html_safety import (
    DEFAULT_PROFILE,
    NO_CUT,
    SafetyProfile,
    balance_basic_tags,
    find_safe_cut,
    prepare_html,
    safe_trim_to_completed_boundary,
    strip_code_fences,
)
from config import StreamConfig

from .completion_tracker import parse_completed_subtitles, remove_incomplete_subtitle

logger = logging.getLogger(__name__)

FINISH_STOP = "STOP"
FINISH_MAX_TOKENS = "MAX_TOKENS"


@dataclass
class ReportOutcome:
    """一次生成请求的最终结果"""
    html: str
    is_truncated: bool
    finish_reason: str
    completed_indices: List[int] = field(default_factory=list)
    remaining_indices: List[int] = field(default_factory=list)
    stream_error: Optional[str] = None

    @property
    def needs_continuation(self) -> bool:
        """是否需要发起第二阶段请求继续生成剩余小标题"""
        return self.finish_reason == FINISH_MAX_TOKENS and self.is_truncated and bool(self.completed_indices)

    def to_done_payload(self) -> Dict[str, Any]:
        payload = {
            "type": "done",
            "html": self.html,
            "isTruncated": self.is_truncated,
            "finishReason": self.finish_reason,
        }
        if self.stream_error:
            payload["streamError"] = self.stream_error
        if self.needs_continuation:
            payload["completedSubtitleIndices"] = self.completed_indices
        return payload

    def to_partial_done_payload(self) -> Dict[str, Any]:
        return {
            "type": "partial_done",
            "html": self.html,
            "completedSubtitleIndices": self.completed_indices,
            "completedSubtitles": self.completed_indices,
            "remainingSubtitles": self.remaining_indices,
        }


class ReportStreamSession:
    """
    单次报告生成请求的流式会话

    第二阶段请求只携带剩余的小标题，解析得到的下标是过滤后列表中的下标，
    需要通过 remaining_subtitle_indices 映射回原始下标。
    """

    def __init__(
        self,
        menu_subtitles: List[Dict[str, Any]],
        is_second_request: bool = False,
        completed_subtitle_indices: Optional[List[int]] = None,
        remaining_subtitle_indices: Optional[List[int]] = None,
        check_interval: Optional[int] = None,
        max_chars: Optional[int] = None,
        profile: SafetyProfile = DEFAULT_PROFILE
    ):
        self.menu_subtitles = menu_subtitles
        self.is_second_request = is_second_request
        self.request_completed_indices = list(completed_subtitle_indices or [])
        self.remaining_subtitle_indices = list(remaining_subtitle_indices or [])
        self.check_interval = check_interval or StreamConfig.COMPLETION_CHECK_INTERVAL_CHUNKS
        self.max_chars = StreamConfig.STREAM_MAX_CHARS if max_chars is None else max_chars
        self.profile = profile

        self.accumulated_text = ""
        self.chunk_count = 0
        self.last_check_chunk = 0
        self.completed_early = False
        self.stream_error: Optional[str] = None
        self.upstream_finish_reason: Optional[str] = None

    @property
    def accumulated_length(self) -> int:
        return len(self.accumulated_text)

    @property
    def total_subtitle_count(self) -> int:
        if self.is_second_request and self.remaining_subtitle_indices:
            return len(self.request_completed_indices) + len(self.remaining_subtitle_indices)
        return len(self.menu_subtitles)

    def append(self, chunk_text: Optional[str]) -> bool:
        """追加一个 chunk，空白 chunk 被忽略"""
        self.chunk_count += 1
        if not chunk_text or not chunk_text.strip():
            return False
        self.accumulated_text += chunk_text
        return True

    def should_check_completion(self) -> bool:
        return (
            self.chunk_count - self.last_check_chunk >= self.check_interval
            and len(self.accumulated_text.strip()) > StreamConfig.MIN_BUFFER_CHARS_FOR_CHECK
        )

    def check_completion(self) -> bool:
        """
        检查是否所有小标题都已完成

        Returns:
            True 表示可以提前结束读取上游输出
        """
        self.last_check_chunk = self.chunk_count
        filtered, _ = parse_completed_subtitles(strip_code_fences(self.accumulated_text), self.menu_subtitles)
        completed = self._to_original_indices(filtered)

        if len(completed) >= self.total_subtitle_count:
            self.completed_early = True
            logger.info(f"🏁 所有小标题已完成 ({len(completed)}/{self.total_subtitle_count})，提前结束读取")
        else:
            logger.debug(f"完成检查: {len(completed)}/{self.total_subtitle_count} 个小标题")
        return self.completed_early

    def safe_snapshot(self) -> str:
        """当前缓冲区的安全截断结果，可随时推送给客户端"""
        return safe_trim_to_completed_boundary(self.accumulated_text, self.profile)

    def exceeds_max_chars(self) -> bool:
        return self.max_chars > 0 and self.accumulated_length > self.max_chars

    def record_error(self, message: str) -> None:
        self.stream_error = message

    def record_upstream_finish(self, finish_reason: Optional[str]) -> None:
        """记录上游报告的结束原因，最终结果仍按完成情况判定"""
        self.upstream_finish_reason = finish_reason

    def _to_original_indices(self, filtered_indices: List[int]) -> List[int]:
        if not (self.is_second_request and self.remaining_subtitle_indices):
            return list(filtered_indices)

        mapped = [
            self.remaining_subtitle_indices[idx]
            for idx in filtered_indices
            if 0 <= idx < len(self.remaining_subtitle_indices)
        ]
        return self.request_completed_indices + mapped

    def finalize(self) -> ReportOutcome:
        """
        生成最终结果

        - 所有小标题完成（或提前结束）：完整输出，finish_reason 为 STOP
        - 否则：截断到最后一个完成的项目，修正完成列表，finish_reason 为 MAX_TOKENS

        Returns:
            ReportOutcome
        """
        clean_html = prepare_html(self.accumulated_text)
        filtered, _ = parse_completed_subtitles(clean_html, self.menu_subtitles)
        completed = self._to_original_indices(filtered)
        total = self.total_subtitle_count

        if self.completed_early or len(completed) >= total:
            logger.info(f"✅ 报告生成完成: {len(clean_html)} 字符, {total} 个小标题")
            return ReportOutcome(
                html=balance_basic_tags(clean_html, self.profile),
                is_truncated=False,
                finish_reason=FINISH_STOP,
                stream_error=self.stream_error,
            )

        cut = find_safe_cut(clean_html, self.profile)
        trimmed = clean_html if cut == NO_CUT else clean_html[:cut]

        # 截断后重新解析，已闭合但落在切点之后的小标题不算完成
        filtered, _ = parse_completed_subtitles(trimmed, self.menu_subtitles)
        filtered = remove_incomplete_subtitle(trimmed, filtered, self.menu_subtitles)
        completed = self._to_original_indices(filtered)
        remaining = [idx for idx in range(total) if idx not in completed]

        logger.info(
            f"✂️ 报告未完成，安全截断: {len(clean_html)} → {len(trimmed)} 字符, "
            f"已完成 {len(completed)}/{total}"
        )
        return ReportOutcome(
            html=balance_basic_tags(trimmed, self.profile),
            is_truncated=True,
            finish_reason=FINISH_MAX_TOKENS,
            completed_indices=completed,
            remaining_indices=remaining,
            stream_error=self.stream_error,
        )
