"""
LLM Factory

설정(LLMSettings)으로부터 리파인용 LLM 생성
설정된 프로바이더에 키가 없으면 키가 있는 다른 프로바이더로 대체
"""

from enum import Enum
from typing import Dict, Optional

from loguru import logger

from .base_llm import BaseLLM, LLMConfig
from ..config import LLMSettings


class LLMProvider(Enum):
    """지원하는 LLM 프로바이더"""
    OPENAI = "openai"
    OPENROUTER = "openrouter"


# 설정된 프로바이더를 쓸 수 없을 때의 대체 순서
FALLBACK_ORDER = (LLMProvider.OPENROUTER, LLMProvider.OPENAI)


class LLMFactory:
    """
    LLM 인스턴스 생성 팩토리

    사용 예시:
        llm = LLMFactory.create(
            LLMProvider.OPENAI,
            LLMConfig(model_name="gpt-4o-mini", api_key="...")
        )

        # 환경변수 / .env 기반
        llm = LLMFactory.create_refinement_llm()
    """

    @staticmethod
    def create(provider: LLMProvider, config: LLMConfig) -> BaseLLM:
        if provider == LLMProvider.OPENAI:
            from .openai_llm import OpenAILLM
            return OpenAILLM(config)

        elif provider == LLMProvider.OPENROUTER:
            from .openrouter_llm import OpenRouterLLM
            return OpenRouterLLM(config)

        raise ValueError(f"지원하지 않는 LLM 프로바이더: {provider}")

    @staticmethod
    def _api_keys(settings: LLMSettings) -> Dict[LLMProvider, Optional[str]]:
        return {
            LLMProvider.OPENAI: settings.OPENAI_API_KEY,
            LLMProvider.OPENROUTER: settings.OPENROUTER_API_KEY,
        }

    @staticmethod
    def _model_for(provider: LLMProvider, model: str) -> str:
        """OpenAI 직접 호출에는 "openai/" 접두어를 뗀 모델명 사용"""
        if provider == LLMProvider.OPENAI and model.startswith("openai/"):
            return model.split("/", 1)[1]
        return model

    @staticmethod
    def select_provider(settings: LLMSettings) -> Optional[LLMProvider]:
        """
        사용할 프로바이더 결정

        Returns:
            설정된 프로바이더 (키가 있을 때), 아니면 FALLBACK_ORDER 중 키가 있는 첫 프로바이더.
            어느 키도 없으면 None
        """
        keys = LLMFactory._api_keys(settings)
        try:
            preferred = LLMProvider(settings.PROVIDER)
        except ValueError:
            logger.warning(f"[LLMFactory] 알 수 없는 프로바이더 '{settings.PROVIDER}', 대체 순서 사용")
            preferred = None

        if preferred and keys[preferred]:
            return preferred

        for provider in FALLBACK_ORDER:
            if keys[provider]:
                if preferred:
                    logger.info(f"[LLMFactory] {preferred.value} 키 없음 → {provider.value} 사용")
                return provider
        return None

    @staticmethod
    def create_refinement_llm(settings: Optional[LLMSettings] = None) -> Optional[BaseLLM]:
        """
        경어 리파인용 LLM 생성

        KEIGO_LLM_PROVIDER / KEIGO_LLM_MODEL 환경변수로 전환.
        API 키가 없으면 None (규칙 기반 파이프라인만 사용)
        """
        settings = settings or LLMSettings()
        provider = LLMFactory.select_provider(settings) if settings.enabled else None
        if provider is None:
            logger.info("[LLMFactory] API 키 없음, LLM 리파인 비활성화")
            return None

        config = LLMConfig(
            model_name=LLMFactory._model_for(provider, settings.MODEL),
            api_key=LLMFactory._api_keys(settings)[provider],
            temperature=settings.TEMPERATURE,
            max_tokens=settings.MAX_TOKENS,
            timeout=max(1, settings.TIMEOUT_MS // 1000),
        )
        logger.info(f"[LLMFactory] {provider.value} / {config.model_name} 사용")
        return LLMFactory.create(provider, config)

    @staticmethod
    def provider_status(settings: Optional[LLMSettings] = None) -> Dict[str, Dict[str, bool]]:
        """프로바이더별 사용 가능 여부"""
        settings = settings or LLMSettings()
        keys = LLMFactory._api_keys(settings)
        active = LLMFactory.select_provider(settings)
        return {
            provider.value: {
                "available": bool(keys[provider]),
                "active": provider == active,
            }
            for provider in LLMProvider
        }
