"""
LLM 客户端与提示词模板测试
"""

from types import SimpleNamespace

import pytest

from config import LLMConfig, StreamConfig
from llm_api import llm_client as llm_client_module
from llm_api.llm_client import LLMClient
from llm_api.prompt_templates import ReportPromptTemplates, get_report_prompts


def make_chunk(content=None, finish_reason=None):
    choice = SimpleNamespace(delta=SimpleNamespace(content=content), finish_reason=finish_reason)
    return SimpleNamespace(choices=[choice])


class FakeCompletions:
    def __init__(self, chunks, failures=0):
        self.chunks = chunks
        self.failures = failures
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.failures:
            self.failures -= 1
            raise ConnectionError("temporary failure")
        return iter(self.chunks)


def make_client(completions):
    client = LLMClient.__new__(LLMClient)
    client.provider = "openai"
    client.model_name = "test-model"
    client.client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return client


class TestLLMClientStreaming:

    def test_stream_text_and_finish(self):
        completions = FakeCompletions([
            make_chunk("<div>"),
            make_chunk(None),
            SimpleNamespace(choices=[]),
            make_chunk("hello</div>", finish_reason="stop"),
        ])
        client = make_client(completions)

        events = list(client.stream_chat([{"role": "user", "content": "hi"}]))
        assert events == [
            {"type": "text", "text": "<div>"},
            {"type": "text", "text": "hello</div>"},
            {"type": "finish", "finish_reason": "STOP"},
        ]
        call = completions.calls[0]
        assert call["stream"] is True
        assert call["model"] == "test-model"

    def test_length_maps_to_max_tokens(self):
        client = make_client(FakeCompletions([make_chunk("x", finish_reason="length")]))
        events = list(client.stream_chat([{"role": "user", "content": "hi"}]))
        assert events[-1] == {"type": "finish", "finish_reason": "MAX_TOKENS"}

    def test_with_system_prompt(self):
        completions = FakeCompletions([make_chunk("x", finish_reason="stop")])
        client = make_client(completions)
        list(client.stream_chat_with_system("sys", "user", model="other", temperature=0.5))

        call = completions.calls[0]
        assert call["messages"][0] == {"role": "system", "content": "sys"}
        assert call["model"] == "other"
        assert call["temperature"] == 0.5

    def test_retry_on_open(self, monkeypatch):
        monkeypatch.setattr(llm_client_module.time, "sleep", lambda _: None)
        monkeypatch.setattr(LLMConfig, "MAX_RETRIES", 3)
        completions = FakeCompletions([make_chunk("ok", finish_reason="stop")], failures=2)
        client = make_client(completions)

        events = list(client.stream_chat([{"role": "user", "content": "hi"}]))
        assert events[0] == {"type": "text", "text": "ok"}
        assert len(completions.calls) == 3

    def test_retry_exhausted(self, monkeypatch):
        monkeypatch.setattr(llm_client_module.time, "sleep", lambda _: None)
        monkeypatch.setattr(LLMConfig, "MAX_RETRIES", 2)
        client = make_client(FakeCompletions([], failures=5))

        with pytest.raises(ConnectionError):
            list(client.stream_chat([{"role": "user", "content": "hi"}]))

    def test_unsupported_provider(self):
        with pytest.raises(ValueError):
            LLMClient(provider="unknown")

    def test_get_info(self):
        info = make_client(FakeCompletions([])).get_info()
        assert info["provider"] == "openai"
        assert info["model"] == "test-model"


class TestReportPromptTemplates:

    @pytest.fixture
    def subtitles(self):
        return [
            {
                "subtitle": "1-1. 总体运势",
                "interpretation_tool": "十神分析",
                "char_count": 300,
                "detail_menus": [{"detail_menu": "上半年", "char_count": 200}, {"detail_menu": "下半年"}],
            },
            {"subtitle": "2-1. 爱情运", "thumbnail": "https://example.com/love.png"},
        ]

    def test_first_phase_prompt(self, subtitles):
        system, user = ReportPromptTemplates.build_report_prompt(
            role_prompt="命理师",
            menu_subtitles=subtitles,
            menu_items=[{"title": "年运"}, {"title": "爱情", "thumbnail": "https://example.com/m.png"}],
            restrictions="不要提到死亡",
            user_info={"name": "김철수", "gender": "male"},
        )
        assert "命理师" in system
        assert "不要提到死亡" in system
        assert StreamConfig.REPORT_LANGUAGE in system

        assert "菜单 1: 年运" in user
        assert "菜单 2: 爱情" in user
        assert "十神分析" in user
        assert "约 200 字" in user
        assert "约 500 字" in user
        assert "김철수" in user
        assert '<div class="menu-section">' in user
        assert 'class="menu-thumbnail"' in user
        assert "<!-- ITEM_END: [小标题编号] -->" in user
        assert "第二阶段请求" not in user

    def test_second_phase_prompt(self, subtitles):
        _, user = get_report_prompts(
            role_prompt="命理师",
            menu_subtitles=subtitles[1:],
            menu_items=[{"title": "年运"}, {"title": "爱情"}],
            is_second_request=True,
            completed_subtitles=["1-1. 总体运势"],
        )
        assert "第二阶段请求" in user
        assert "- 1-1. 总体运势" in user
        # 没有剩余小标题的菜单不再列出
        assert "菜单 1: 年运" not in user
        assert "菜单 2: 爱情" in user
        assert "ITEM_START" in user

    def test_without_menu_items(self, subtitles):
        _, user = ReportPromptTemplates.build_report_prompt(role_prompt="x", menu_subtitles=subtitles)
        assert "1-1. 总体运势" in user
        assert "2-1. 爱情运" in user
