"""
配置文件：运势报告流式生成服务
包含 LLM 参数、流式截断参数、日志等配置
"""

import os

# ==================== LLM API 配置 ====================
class LLMConfig:
    """LLM API 相关配置"""
    # 使用哪个提供商：'openai'、'azure' 或 'dashscope'
    PROVIDER = os.getenv("LLM_PROVIDER", "openai")

    # Azure OpenAI 配置
    AZURE_OPENAI_API_KEY = os.getenv("AZURE_OPENAI_API_KEY", "")
    AZURE_OPENAI_ENDPOINT = os.getenv("AZURE_OPENAI_ENDPOINT", "")
    AZURE_OPENAI_API_VERSION = os.getenv("AZURE_OPENAI_API_VERSION", "2024-02-15-preview")
    DEPLOYMENT_NAME = os.getenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4o")

    # OpenAI 配置
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    # DashScope 配置（阿里云灵积）
    DASHSCOPE_API_KEY = os.getenv("DASHSCOPE_API_KEY", "")
    DASHSCOPE_MODEL = os.getenv("DASHSCOPE_MODEL", "qwen-max")

    # API 调用参数（报告较长，输出上限放宽）
    TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.2"))
    TOP_P = float(os.getenv("LLM_TOP_P", "0.95"))
    MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "16000"))
    TIMEOUT = int(os.getenv("LLM_TIMEOUT", "1800"))
    MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "3"))
    RETRY_DELAY = int(os.getenv("LLM_RETRY_DELAY", "2"))


# ==================== 流式输出配置 ====================
class StreamConfig:
    """流式生成与安全截断相关配置"""
    # 单次生成允许累积的最大字符数（0 表示不限制）
    STREAM_MAX_CHARS = int(os.getenv("REPORT_STREAM_MAX_CHARS", "100000"))

    # 每隔多少个 chunk 检查一次完成情况并推送安全截断结果
    COMPLETION_CHECK_INTERVAL_CHUNKS = int(os.getenv("REPORT_COMPLETION_CHECK_INTERVAL", "50"))

    # 缓冲区低于该长度时不做完成检查
    MIN_BUFFER_CHARS_FOR_CHECK = int(os.getenv("REPORT_MIN_BUFFER_CHARS_FOR_CHECK", "100"))

    # 判定小标题 / 详细菜单已完成所需的最少正文长度
    MIN_TEXT_LEN_SUBTITLE = int(os.getenv("REPORT_MIN_TEXT_LEN_SUBTITLE", "10"))
    MIN_TEXT_LEN_DETAIL = int(os.getenv("REPORT_MIN_TEXT_LEN_DETAIL", "10"))

    # 报告输出语言
    REPORT_LANGUAGE = os.getenv("REPORT_LANGUAGE", "한국어")


# ==================== 日志配置 ====================
class LogConfig:
    """日志记录配置"""

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR
    LOG_FILE = os.getenv("LOG_FILE", "")
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# ==================== 工具函数 ====================
def validate_config():
    """验证配置完整性"""
    errors = []

    if LLMConfig.PROVIDER == "azure":
        if not LLMConfig.AZURE_OPENAI_API_KEY:
            errors.append("未设置 AZURE_OPENAI_API_KEY 环境变量")
        if not LLMConfig.AZURE_OPENAI_ENDPOINT:
            errors.append("未设置 AZURE_OPENAI_ENDPOINT 环境变量")
    elif LLMConfig.PROVIDER == "openai":
        if not LLMConfig.OPENAI_API_KEY:
            errors.append("未设置 OPENAI_API_KEY 环境变量")
    elif LLMConfig.PROVIDER == "dashscope":
        if not LLMConfig.DASHSCOPE_API_KEY:
            errors.append("未设置 DASHSCOPE_API_KEY 环境变量")
    else:
        errors.append(f"不支持的 LLM_PROVIDER: {LLMConfig.PROVIDER}")

    if StreamConfig.COMPLETION_CHECK_INTERVAL_CHUNKS <= 0:
        errors.append("REPORT_COMPLETION_CHECK_INTERVAL 必须大于 0")
    if StreamConfig.STREAM_MAX_CHARS < 0:
        errors.append("REPORT_STREAM_MAX_CHARS 不能为负数")

    if errors:
        raise ValueError(f"配置验证失败:\n" + "\n".join(errors))

    return True


def get_config_summary():
    """获取配置摘要信息"""
    return {
        "llm_provider": LLMConfig.PROVIDER,
        "max_tokens": LLMConfig.MAX_TOKENS,
        "stream_params": {
            "stream_max_chars": StreamConfig.STREAM_MAX_CHARS,
            "completion_check_interval_chunks": StreamConfig.COMPLETION_CHECK_INTERVAL_CHUNKS,
            "min_text_len_subtitle": StreamConfig.MIN_TEXT_LEN_SUBTITLE,
            "min_text_len_detail": StreamConfig.MIN_TEXT_LEN_DETAIL,
        },
        "report_language": StreamConfig.REPORT_LANGUAGE,
        "log_level": LogConfig.LOG_LEVEL,
    }


if __name__ == "__main__":
    # 测试配置
    try:
        validate_config()
        print("✅ 配置验证通过")
        print("\n配置摘要:")
        import json
        print(json.dumps(get_config_summary(), indent=2, ensure_ascii=False))
    except Exception as e:
        print(f"❌ 配置错误: {e}")
