"""
LLM API 客户端：统一封装 LLM API 调用
支持 OpenAI、Azure OpenAI 和 DashScope，提供重试与流式输出
"""

import logging
import time
from typing import Optional, Dict, Any, Iterator, List
from openai import AzureOpenAI, OpenAI

from config import LLMConfig

logger = logging.getLogger(__name__)

# OpenAI 的 finish_reason → 报告流程使用的结束原因
FINISH_REASON_MAP = {
    "length": "MAX_TOKENS",
    "stop": "STOP",
}


class LLMClient:
    """
    LLM API 统一客户端
    封装 OpenAI 兼容接口的流式 Chat Completion 调用
    """

    def __init__(self, provider: Optional[str] = None):
        """
        初始化 LLM 客户端

        Args:
            provider: 'openai'、'azure' 或 'dashscope'，默认使用配置中的值
        """
        self.provider = provider or LLMConfig.PROVIDER
        self.client = None
        self._initialize_client()

    def _initialize_client(self):
        """初始化 LLM API 客户端"""
        try:
            if self.provider == "azure":
                self.client = AzureOpenAI(
                    api_key=LLMConfig.AZURE_OPENAI_API_KEY,
                    api_version=LLMConfig.AZURE_OPENAI_API_VERSION,
                    azure_endpoint=LLMConfig.AZURE_OPENAI_ENDPOINT,
                    timeout=LLMConfig.TIMEOUT
                )
                self.model_name = LLMConfig.DEPLOYMENT_NAME
                logger.info(
                    f"✅ Azure OpenAI 客户端初始化成功: {self.model_name}"
                )

            elif self.provider == "openai":
                self.client = OpenAI(
                    api_key=LLMConfig.OPENAI_API_KEY,
                    timeout=LLMConfig.TIMEOUT
                )
                self.model_name = LLMConfig.OPENAI_MODEL
                logger.info(
                    f"✅ OpenAI 客户端初始化成功: {self.model_name}"
                )

            elif self.provider == "dashscope":
                self.client = OpenAI(
                    api_key=LLMConfig.DASHSCOPE_API_KEY,
                    base_url="https://dashscope.aliyuncs.com/compatible-mode/v1",
                    timeout=LLMConfig.TIMEOUT
                )
                self.model_name = LLMConfig.DASHSCOPE_MODEL
                logger.info(
                    f"✅ DashScope 客户端初始化成功: {self.model_name}"
                )

            else:
                raise ValueError(f"不支持的 provider: {self.provider}")

        except Exception as e:
            logger.error(f"❌ LLM 客户端初始化失败: {e}")
            raise

    def _open_stream(self, kwargs: Dict[str, Any]):
        """建立流式请求，只在收到第一个 chunk 之前重试"""
        for attempt in range(LLMConfig.MAX_RETRIES):
            try:
                logger.debug(
                    f"🔄 LLM 流式调用 (尝试 {attempt + 1}/{LLMConfig.MAX_RETRIES})"
                )
                return self.client.chat.completions.create(**kwargs)

            except Exception as e:
                logger.warning(
                    f"⚠️ LLM 流式调用失败 (尝试 {attempt + 1}): {e}"
                )

                if attempt < LLMConfig.MAX_RETRIES - 1:
                    wait_time = LLMConfig.RETRY_DELAY * (2 ** attempt)
                    logger.info(f"⏳ 等待 {wait_time}s 后重试...")
                    time.sleep(wait_time)
                else:
                    logger.error(f"❌ LLM 流式调用失败，已达最大重试次数")
                    raise

    def stream_chat(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Iterator[Dict[str, Any]]:
        """
        流式调用 Chat Completion API

        Args:
            messages: 消息列表，格式: [{"role": "user", "content": "..."}]
            model: 模型名称，默认使用配置中的模型
            temperature: 温度参数
            max_tokens: 最大输出 Token 数

        Yields:
            {"type": "text", "text": "..."}，最后一个事件为
            {"type": "finish", "finish_reason": "STOP" | "MAX_TOKENS"}
        """
        kwargs = {
            "model": model or self.model_name,
            "messages": messages,
            "temperature": LLMConfig.TEMPERATURE if temperature is None else temperature,
            "top_p": LLMConfig.TOP_P,
            "max_tokens": max_tokens or LLMConfig.MAX_TOKENS,
            "stream": True,
        }

        start_time = time.time()
        stream = self._open_stream(kwargs)

        finish_reason = None
        chunk_count = 0
        for chunk in stream:
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            text = choice.delta.content if choice.delta else None
            if text:
                chunk_count += 1
                yield {"type": "text", "text": text}
            if choice.finish_reason:
                finish_reason = choice.finish_reason

        elapsed = time.time() - start_time
        logger.info(
            f"✅ LLM 流式调用结束 "
            f"(耗时: {elapsed:.2f}s, chunks: {chunk_count}, finish_reason: {finish_reason})"
        )
        yield {"type": "finish", "finish_reason": FINISH_REASON_MAP.get(finish_reason, "STOP")}

    def stream_chat_with_system(
        self,
        system_prompt: str,
        user_prompt: str,
        **kwargs
    ) -> Iterator[Dict[str, Any]]:
        """
        使用系统提示词和用户提示词流式调用 API

        Args:
            system_prompt: 系统提示词
            user_prompt: 用户提示词
            **kwargs: 其他参数传递给 stream_chat 方法
        """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt}
        ]
        return self.stream_chat(messages, **kwargs)

    def get_info(self) -> Dict[str, Any]:
        """
        获取客户端信息

        Returns:
            包含 provider、model 等信息的字典
        """
        return {
            "provider": self.provider,
            "model": self.model_name,
            "temperature": LLMConfig.TEMPERATURE,
            "max_tokens": LLMConfig.MAX_TOKENS,
            "max_retries": LLMConfig.MAX_RETRIES
        }


# 全局单例
_global_llm_client = None


def get_llm_client() -> LLMClient:
    """
    获取全局 LLM 客户端单例

    Returns:
        LLMClient 实例
    """
    global _global_llm_client
    if _global_llm_client is None:
        _global_llm_client = LLMClient()
    return _global_llm_client
