"""
LLM 추상화 인터페이스

경어 리파인에 쓰이는 채팅 완성 클라이언트의 기본 클래스
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any, Optional


@dataclass
class LLMConfig:
    """LLM 설정"""
    model_name: str                         # "gpt-4o-mini", "openai/gpt-4o-mini", etc.
    api_key: Optional[str] = None           # 없으면 ENV_KEY 환경변수
    base_url: Optional[str] = None          # 호환 엔드포인트 URL
    temperature: float = 0.3
    max_tokens: int = 200
    timeout: int = 15                       # 초
    extra_params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LLMResponse:
    """LLM 응답"""
    content: str                            # 응답 텍스트 (앞뒤 공백 제거)
    raw_response: Optional[Dict] = None     # 원본 API 응답
    usage: Optional[Dict] = None            # 토큰 사용량
    model: str = ""                         # 사용된 모델명
    finish_reason: Optional[str] = None     # "stop", "length" 등
    latency_ms: float = 0.0

    @property
    def truncated(self) -> bool:
        """max_tokens에 걸려 잘린 응답인지"""
        return self.finish_reason == "length"


class BaseLLM(ABC):
    """
    LLM 추상 클래스

    하위 클래스는 ENV_KEY (API 키 환경변수명)와 generate()를 정의
    """

    ENV_KEY: Optional[str] = None

    def __init__(self, config: LLMConfig):
        self.config = config
        self._client = None

    @abstractmethod
    def _init_client(self):
        """클라이언트 초기화 (lazy loading)"""
        pass

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """
        텍스트 생성

        Args:
            prompt: 사용자 프롬프트
            system_prompt: 시스템 프롬프트 (선택)
            **kwargs: temperature, max_tokens, timeout (config보다 우선)

        Returns:
            LLMResponse
        """
        pass

    def api_key(self) -> Optional[str]:
        key = getattr(self.config, "api_key", None)
        if key:
            return key
        return os.getenv(self.ENV_KEY) if self.ENV_KEY else None

    def is_available(self) -> bool:
        """API 키가 설정되어 있으면 호출 가능"""
        return bool(self.api_key())

    def _require_api_key(self) -> str:
        key = self.api_key()
        if not key:
            raise ValueError(
                f"{self.__class__.__name__} API 키가 필요합니다. "
                f"config.api_key 또는 {self.ENV_KEY} 환경변수를 설정하세요."
            )
        return key

    def _call_params(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        """호출 파라미터 (kwargs > config)"""
        return {
            "temperature": kwargs.get("temperature", self.config.temperature),
            "max_tokens": kwargs.get("max_tokens", self.config.max_tokens),
            "timeout": kwargs.get("timeout", self.config.timeout),
        }

    @staticmethod
    def _messages(prompt: str, system_prompt: Optional[str]) -> list:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def _usage_dict(prompt_tokens, completion_tokens, total_tokens) -> Dict[str, int]:
        return {
            "prompt_tokens": prompt_tokens or 0,
            "completion_tokens": completion_tokens or 0,
            "total_tokens": total_tokens or 0,
        }
