"""
LLM API 模块
"""

from .llm_client import LLMClient, get_llm_client
from .prompt_templates import ReportPromptTemplates, get_report_prompts

__all__ = [
    'LLMClient',
    'get_llm_client',
    'ReportPromptTemplates',
    'get_report_prompts',
]
