"""
OpenAI LLM 구현체 (openai SDK)

경어 리파인 기본 모델: gpt-4o-mini
"""

import time
from typing import Optional

from loguru import logger

from .base_llm import BaseLLM, LLMConfig, LLMResponse


class OpenAILLM(BaseLLM):
    """
    OpenAI Chat Completions 클라이언트

    사용 예시:
        llm = OpenAILLM(LLMConfig(model_name="gpt-4o-mini"))
        if llm.is_available():
            response = llm.generate(prompt, system_prompt="あなたは敬語の専門家です。")
    """

    ENV_KEY = "OPENAI_API_KEY"

    def __init__(self, config: LLMConfig):
        super().__init__(config)

    def _init_client(self):
        """SDK 클라이언트는 첫 호출 시 생성"""
        if self._client is not None:
            return

        from openai import OpenAI

        self._client = OpenAI(
            api_key=self._require_api_key(),
            base_url=self.config.base_url,
            timeout=self.config.timeout,
        )

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        self._init_client()
        params = self._call_params(kwargs)

        started = time.perf_counter()
        response = self._client.chat.completions.create(
            model=self.config.model_name,
            messages=self._messages(prompt, system_prompt),
            **params,
            **self.config.extra_params
        )
        latency_ms = (time.perf_counter() - started) * 1000

        choice = response.choices[0]
        usage = None
        if response.usage:
            usage = self._usage_dict(
                response.usage.prompt_tokens,
                response.usage.completion_tokens,
                response.usage.total_tokens,
            )

        logger.debug(f"[OpenAILLM] {response.model} 응답 {latency_ms:.0f}ms ({choice.finish_reason})")
        return LLMResponse(
            content=(choice.message.content or "").strip(),
            usage=usage,
            model=response.model,
            finish_reason=choice.finish_reason,
            latency_ms=latency_ms,
        )
