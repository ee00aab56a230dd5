"""
流式 HTML 安全处理模块
在任意位置截断部分生成的 HTML 时保持结构完整（尤其是表格），并修复剩余的标签问题
"""

from .profile import SafetyProfile, DEFAULT_PROFILE
from .fence_stripper import strip_code_fences
from .normalizer import normalize_html_basics
from .boundary_scanner import NO_CUT, find_cut_index, find_safe_cut_index_by_markers, find_fallback_cut_index
from .table_guard import is_inside_unclosed_table, move_cut_outside_table
from .tag_balancer import TagBalance, balance_basic_tags, count_tag_balance
from .phase_merger import merge_second_request_html, strip_document_wrappers
from .safe_trim import find_safe_cut, prepare_html, safe_trim_to_completed_boundary

__all__ = [
    'SafetyProfile',
    'DEFAULT_PROFILE',
    'NO_CUT',
    'strip_code_fences',
    'normalize_html_basics',
    'find_cut_index',
    'find_safe_cut_index_by_markers',
    'find_fallback_cut_index',
    'is_inside_unclosed_table',
    'move_cut_outside_table',
    'TagBalance',
    'balance_basic_tags',
    'count_tag_balance',
    'merge_second_request_html',
    'strip_document_wrappers',
    'find_safe_cut',
    'prepare_html',
    'safe_trim_to_completed_boundary',
]
