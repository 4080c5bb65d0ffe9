"""
LLM Backend Interface

오케스트레이터가 호출하는 리파인 백엔드 (선택 사항)

NOTE: 코어는 백엔드 없이도 동작해야 함.
      BaseLLM 구현체는 LLMBackendAdapter로 감싸서 연결
"""

from abc import ABC, abstractmethod

from loguru import logger

from .base_llm import BaseLLM
from ..exceptions import LLMBackendError


class LLMBackend(ABC):
    """
    리파인 백엔드 인터페이스 (Abstract)

    사용 예시:
        class EchoBackend(LLMBackend):
            def generate(self, prompt, max_tokens, temperature, timeout_ms):
                return "承知いたしました"
    """

    @abstractmethod
    def generate(self, prompt: str, max_tokens: int, temperature: float, timeout_ms: int) -> str:
        """
        프롬프트로 변환문 생성

        Args:
            prompt: PromptBuilder가 만든 프롬프트
            max_tokens: 최대 토큰 수
            temperature: 온도
            timeout_ms: 호출 제한 시간 (밀리초)

        Returns:
            생성된 텍스트 (정리 전)

        Raises:
            LLMBackendError: 호출 실패
        """
        pass


class LLMBackendAdapter(LLMBackend):
    """BaseLLM (OpenAI / OpenRouter) → LLMBackend"""

    SYSTEM_PROMPT = "あなたは日本語の敬語表現に精通したビジネス文書の専門家です。"

    def __init__(self, llm: BaseLLM):
        self.llm = llm

    def generate(self, prompt: str, max_tokens: int, temperature: float, timeout_ms: int) -> str:
        try:
            response = self.llm.generate(
                prompt,
                system_prompt=self.SYSTEM_PROMPT,
                max_tokens=max_tokens,
                temperature=temperature,
                timeout=max(1, timeout_ms // 1000),
            )
        except Exception as e:
            raise LLMBackendError(f"LLM 호출 실패: {e}") from e

        if response.truncated:
            logger.warning(f"[LLMBackendAdapter] 응답이 max_tokens({max_tokens})에서 잘림")
        if response.usage:
            logger.debug(f"[LLMBackendAdapter] {response.model} 토큰 사용량: {response.usage}")
        return response.content
