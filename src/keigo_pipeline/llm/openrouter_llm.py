"""
OpenRouter LLM 구현체

OpenAI 호환 REST API를 requests로 직접 호출
모델명은 "<vendor>/<model>" 형식 (openai/gpt-4o-mini, anthropic/claude-3-haiku)
"""

import time
from typing import Optional

import requests
from loguru import logger

from .base_llm import BaseLLM, LLMConfig, LLMResponse


DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
APP_TITLE = "keigo-pipeline"


class OpenRouterLLM(BaseLLM):
    """OpenRouter 채팅 완성 클라이언트"""

    ENV_KEY = "OPENROUTER_API_KEY"

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self.base_url = (config.base_url or DEFAULT_BASE_URL).rstrip("/")

    def _init_client(self):
        """HTTP 세션 재사용"""
        if self._client is None:
            self._client = requests.Session()

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._require_api_key()}",
            "Content-Type": "application/json",
            "X-Title": APP_TITLE,
        }

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        self._init_client()
        params = self._call_params(kwargs)
        timeout = params.pop("timeout")

        payload = {
            "model": self.config.model_name,
            "messages": self._messages(prompt, system_prompt),
            **params,
            **self.config.extra_params,
        }

        started = time.perf_counter()
        response = self._client.post(
            f"{self.base_url}/chat/completions",
            headers=self._headers(),
            json=payload,
            timeout=timeout,
        )
        response.raise_for_status()
        latency_ms = (time.perf_counter() - started) * 1000

        data = response.json()
        if "error" in data:
            # OpenRouter는 200 응답 안에 에러를 담기도 함
            raise RuntimeError(f"OpenRouter 오류: {data['error']}")

        choice = data["choices"][0]
        usage = None
        if "usage" in data:
            usage = self._usage_dict(
                data["usage"].get("prompt_tokens"),
                data["usage"].get("completion_tokens"),
                data["usage"].get("total_tokens"),
            )

        model = data.get("model", self.config.model_name)
        logger.debug(f"[OpenRouterLLM] {model} 응답 {latency_ms:.0f}ms")
        return LLMResponse(
            content=(choice["message"].get("content") or "").strip(),
            raw_response=data,
            usage=usage,
            model=model,
            finish_reason=choice.get("finish_reason"),
            latency_ms=latency_ms,
        )
