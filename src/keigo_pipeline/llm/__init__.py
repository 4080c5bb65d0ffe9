"""
LLM 추상화 레이어

선택적 리파인 단계 (OpenAI, OpenRouter)
"""

from .base_llm import BaseLLM, LLMConfig, LLMResponse
from .openai_llm import OpenAILLM
from .openrouter_llm import OpenRouterLLM
from .factory import LLMFactory, LLMProvider
from .backend import LLMBackend, LLMBackendAdapter
from .prompt_builder import PromptBuilder, TextAnalysis, FEW_SHOT_EXAMPLES
from .cache import ResponseCache

__all__ = [
    "BaseLLM",
    "LLMConfig",
    "LLMResponse",
    "OpenAILLM",
    "OpenRouterLLM",
    "LLMFactory",
    "LLMProvider",
    "LLMBackend",
    "LLMBackendAdapter",
    "PromptBuilder",
    "TextAnalysis",
    "FEW_SHOT_EXAMPLES",
    "ResponseCache",
]
