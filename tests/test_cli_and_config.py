"""
命令行工具与配置测试
"""

import json

import pytest

import config
import main


class TestCli:

    def test_trim_to_file(self, tmp_path):
        source = tmp_path / "partial.html"
        source.write_text("<div>hello<!-- ITEM_END:1 --> world<table><tr><td>x", encoding="utf-8")
        output = tmp_path / "out" / "trimmed.html"

        assert main.main(["trim", str(source), "-o", str(output)]) == 0
        assert output.read_text(encoding="utf-8") == "<div>hello<!-- ITEM_END:1 --></div>"

    def test_trim_to_stdout(self, tmp_path, capsys):
        source = tmp_path / "partial.html"
        source.write_text("<div>a</div><div>b", encoding="utf-8")

        assert main.main(["trim", str(source)]) == 0
        assert capsys.readouterr().out.strip() == "<div>a</div>"

    def test_merge(self, tmp_path):
        first = tmp_path / "first.html"
        second = tmp_path / "second.html"
        first.write_text("<div>A", encoding="utf-8")
        second.write_text("<html><body><style>.x{}</style><p>B</p></body></html>", encoding="utf-8")
        output = tmp_path / "merged.html"

        assert main.main(["merge", str(first), str(second), "-o", str(output)]) == 0
        assert output.read_text(encoding="utf-8") == "<div>A</div><p>B</p>"

    def test_check_unbalanced(self, tmp_path, capsys):
        source = tmp_path / "partial.html"
        source.write_text("<div><table><tr><td>x", encoding="utf-8")

        assert main.main(["check", str(source)]) == 2
        report = json.loads(capsys.readouterr().out)
        assert report["balanced"] is False
        assert report["tags"]["table"]["missing"] == 1
        assert report["tags"]["div"]["missing"] == 1

    def test_check_balanced(self, tmp_path, capsys):
        source = tmp_path / "done.html"
        source.write_text("<div><p>x</p></div>", encoding="utf-8")

        assert main.main(["check", str(source)]) == 0
        assert json.loads(capsys.readouterr().out)["balanced"] is True

    def test_missing_input(self, tmp_path):
        assert main.main(["trim", str(tmp_path / "nope.html")]) == 1

    def test_command_required(self):
        with pytest.raises(SystemExit):
            main.main([])


class TestConfig:

    def test_summary(self):
        summary = config.get_config_summary()
        assert summary["stream_params"]["stream_max_chars"] == config.StreamConfig.STREAM_MAX_CHARS
        assert "llm_provider" in summary

    def test_validate_rejects_unknown_provider(self, monkeypatch):
        monkeypatch.setattr(config.LLMConfig, "PROVIDER", "bogus")
        with pytest.raises(ValueError, match="LLM_PROVIDER"):
            config.validate_config()

    def test_validate_requires_key(self, monkeypatch):
        monkeypatch.setattr(config.LLMConfig, "PROVIDER", "openai")
        monkeypatch.setattr(config.LLMConfig, "OPENAI_API_KEY", "")
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            config.validate_config()

    def test_validate_stream_settings(self, monkeypatch):
        monkeypatch.setattr(config.LLMConfig, "PROVIDER", "openai")
        monkeypatch.setattr(config.LLMConfig, "OPENAI_API_KEY", "sk-test")
        monkeypatch.setattr(config.StreamConfig, "COMPLETION_CHECK_INTERVAL_CHUNKS", 0)
        with pytest.raises(ValueError, match="REPORT_COMPLETION_CHECK_INTERVAL"):
            config.validate_config()

    def test_validate_ok(self, monkeypatch):
        monkeypatch.setattr(config.LLMConfig, "PROVIDER", "dashscope")
        monkeypatch.setattr(config.LLMConfig, "DASHSCOPE_API_KEY", "key")
        assert config.validate_config() is True
