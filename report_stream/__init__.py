"""
报告流式生成模块
跟踪小标题完成情况，管理单次生成请求的流式会话
"""

from .completion_tracker import parse_completed_subtitles, remove_incomplete_subtitle
from .stream_session import FINISH_MAX_TOKENS, FINISH_STOP, ReportOutcome, ReportStreamSession

__all__ = [
    'parse_completed_subtitles',
    'remove_incomplete_subtitle',
    'ReportOutcome',
    'ReportStreamSession',
    'FINISH_STOP',
    'FINISH_MAX_TOKENS',
]
