import asyncio
import time

import pytest

from keigo_pipeline.config import LLMSettings
from keigo_pipeline.engine import ConversionOrchestrator
from keigo_pipeline.exceptions import LLMBackendError
from keigo_pipeline.llm import (
    BaseLLM,
    LLMBackend,
    LLMBackendAdapter,
    LLMFactory,
    LLMProvider,
    LLMResponse,
    OpenAILLM,
    OpenRouterLLM,
    PromptBuilder,
    ResponseCache,
)
from keigo_pipeline.models import ContextDescriptor, Relationship
from keigo_pipeline.scoring import validate_refinement


# ==================== 테스트용 백엔드 ====================

class StaticBackend(LLMBackend):
    def __init__(self, output):
        self.output = output
        self.calls = 0
        self.prompts = []

    def generate(self, prompt, max_tokens, temperature, timeout_ms):
        self.calls += 1
        self.prompts.append(prompt)
        return self.output


class SlowBackend(LLMBackend):
    def __init__(self, delay):
        self.delay = delay

    def generate(self, prompt, max_tokens, temperature, timeout_ms):
        time.sleep(self.delay)
        return "遅すぎる応答"


class FailingBackend(LLMBackend):
    def generate(self, prompt, max_tokens, temperature, timeout_ms):
        raise LLMBackendError("backend unavailable")


# ==================== convert_async ====================

def test_refinement_success_cleans_output(make_orchestrator):
    backend = StaticBackend("変換結果: 「アップデートをお願いできますでしょうか」")
    orchestrator = make_orchestrator(backend=backend)

    result = asyncio.run(orchestrator.convert_async("アプデしといてくれる？", {"level": 2}))

    assert result.converted == "アップデートをお願いできますでしょうか"
    assert result.metadata["engine"] == "llm-refinement"
    assert result.metadata["cached"] is False
    assert result.level == 2
    assert len(result.variations) == 1
    assert result.analysis.confidence == pytest.approx(0.8 * result.analysis.quality["overall"])
    assert backend.prompts[0].endswith("変換結果:")
    assert result.metadata["validation"] == {"is_valid": True, "issues": [], "corrections": []}
    assert not [s for s in result.suggestions if s.type == "validation"]


def test_under_polite_refinement_is_flagged(make_orchestrator):
    orchestrator = make_orchestrator(backend=StaticBackend("アップデートしといて"))

    result = asyncio.run(orchestrator.convert_async("アプデしといて", {"level": 3}))

    assert result.metadata["engine"] == "llm-refinement"
    assert result.metadata["validation"]["is_valid"] is False
    assert "inadequate_politeness" in result.metadata["validation"]["issues"]
    assert result.analysis.confidence == pytest.approx(
        max(0.1, 0.8 * 0.8 * result.analysis.quality["overall"])
    )
    actions = [s.action for s in result.suggestions if s.type == "validation"]
    assert "adjust_politeness_level" in actions


def test_over_polite_refinement_is_flagged(make_orchestrator):
    output = "恐れ入りますが、恐縮ですが、申し訳ございません。アップデートをお願いいたします"
    orchestrator = make_orchestrator(backend=StaticBackend(output))

    result = asyncio.run(orchestrator.convert_async("アップデートしておいてください", {"level": 5}))

    assert result.metadata["validation"]["issues"] == ["over_polite"]
    actions = [s.action for s in result.suggestions if s.type == "validation"]
    assert actions == ["reduce_excessive_politeness"]


def test_length_anomaly_is_flagged(make_orchestrator):
    output = "恐れ入りますが、お忙しいところ大変申し訳ございませんが、資料をお送りいただけますでしょうか"
    orchestrator = make_orchestrator(backend=StaticBackend(output))

    result = asyncio.run(orchestrator.convert_async("資料送って", {"level": 3}))

    assert "length_anomaly" in result.metadata["validation"]["issues"]
    assert result.analysis.confidence < 0.8 * result.analysis.quality["overall"]


def test_failure_after_refinement_falls_back_to_rules(make_orchestrator, monkeypatch):
    orchestrator = make_orchestrator(backend=StaticBackend("資料をお送りいただけますでしょうか"))

    def broken_validation(original, converted, level):
        raise RuntimeError("validation failure")

    monkeypatch.setattr("keigo_pipeline.engine.orchestrator.validate_refinement", broken_validation)
    result = asyncio.run(orchestrator.convert_async("資料を送って", {"level": 3}))

    assert result.metadata["engine"] == "enhanced-v2.0"
    assert result.metadata["error"] == "validation failure"
    assert not result.is_fallback
    assert len(orchestrator.history) == 1


def test_refinement_suggestions_for_weak_axes_and_superior():
    validation = validate_refinement("資料送って", "資料を送って", 2)
    suggestions = ConversionOrchestrator._refinement_suggestions(
        {"naturalness": 0.6, "intent_preservation": 0.7},
        validation,
        ContextDescriptor(relationship=Relationship.SUPERIOR),
        2,
    )

    assert [s.type for s in suggestions] == ["naturalness", "intent", "level", "validation"]
    assert suggestions[-1].action == "adjust_politeness_level"


def test_refinement_timeout_falls_back_to_rules(make_orchestrator):
    orchestrator = make_orchestrator(backend=SlowBackend(0.5), timeout_ms=50)

    result = asyncio.run(orchestrator.convert_async("アプデしといてくれる？", {"level": 2}))

    assert result.metadata["engine"] == "enhanced-v2.0"
    assert "50ms" in result.metadata["error"]
    assert "アプデ" not in result.converted


def test_refinement_backend_error_falls_back(make_orchestrator):
    orchestrator = make_orchestrator(backend=FailingBackend())

    result = asyncio.run(orchestrator.convert_async("資料を送って"))

    assert result.metadata["engine"] == "enhanced-v2.0"
    assert result.metadata["error"] == "backend unavailable"
    assert not result.is_fallback


def test_empty_llm_output_falls_back(make_orchestrator):
    orchestrator = make_orchestrator(backend=StaticBackend("変換結果:   "))

    result = asyncio.run(orchestrator.convert_async("資料を送って"))

    assert result.metadata["engine"] == "enhanced-v2.0"
    assert result.metadata["error"]


def test_refinement_uses_cache(make_orchestrator):
    backend = StaticBackend("資料をお送りいただけますでしょうか")
    orchestrator = make_orchestrator(backend=backend)

    first = asyncio.run(orchestrator.convert_async("資料を送って", {"level": 3}))
    second = asyncio.run(orchestrator.convert_async("資料を送って", {"level": 3}))

    assert backend.calls == 1
    assert first.metadata["cached"] is False
    assert second.metadata["cached"] is True
    assert second.converted == first.converted


def test_use_llm_false_skips_backend(make_orchestrator):
    backend = StaticBackend("使われない")
    orchestrator = make_orchestrator(backend=backend)

    result = asyncio.run(orchestrator.convert_async("資料を送って", use_llm=False))

    assert backend.calls == 0
    assert result.metadata["engine"] == "enhanced-v2.0"


def test_without_backend_matches_sync_engine(orchestrator):
    result = asyncio.run(orchestrator.convert_async(""))

    assert result.is_fallback


def test_refinement_is_recorded_in_history(make_orchestrator):
    orchestrator = make_orchestrator(backend=StaticBackend("承知いたしました"))
    asyncio.run(orchestrator.convert_async("わかった"))

    assert orchestrator.history[-1].approach == "llm-refinement"


# ==================== PromptBuilder ====================

def test_prompt_contains_conditions_and_format():
    prompt = PromptBuilder().build("アプデしといて", {"level": 3, "context": "technical"})

    assert '"アプデしといて"' in prompt
    assert "丁寧度レベル: 3/5" in prompt
    assert "カジュアルな表現は適切な敬語に変換する" in prompt
    assert prompt.endswith("変換結果:")


def test_prompt_defaults():
    prompt = PromptBuilder().build("こんにちは")

    assert "丁寧度レベル: 2/5" in prompt
    assert "文脈: business" in prompt
    assert "関係性: colleague" in prompt


def test_dialect_rule_is_added_for_kansai():
    builder = PromptBuilder()

    assert builder.detect_dialect("ほんまやで") == "kansai"
    assert builder.detect_dialect("資料を送ってください") is None
    assert "方言は標準語の適切な表現に変換する" in builder.build("ほんまやで")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("これやって", "request"),
        ("いつ終わる？", "question"),
        ("ごめん", "apology"),
        ("ありがとう", "appreciation"),
        ("ふむ", "general"),
    ]
)
def test_detect_intent(text, expected):
    assert PromptBuilder.detect_intent(text) == expected


def test_examples_are_capped():
    builder = PromptBuilder()
    analysis = builder.analyze("ほんまやで")
    examples = builder.select_examples(analysis, {"level": 2, "context": "business"})

    assert len(examples) <= 5
    assert all(e.has_dialect for e in examples)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("変換結果: 承知しました", "承知しました"),
        ("「承知しました」", "承知しました"),
        ('"承知しました"', "承知しました"),
        ("承知\n\nしました", "承知 しました"),
        ("", ""),
        (None, ""),
    ]
)
def test_clean_output(raw, expected):
    assert PromptBuilder.clean_output(raw) == expected


# ==================== ResponseCache ====================

def test_cache_expires_after_ttl():
    now = [0.0]
    cache = ResponseCache(max_size=10, ttl_seconds=10, clock=lambda: now[0])
    cache.set("k", "v")

    now[0] = 10.0
    assert cache.get("k") == "v"
    now[0] = 10.5
    assert cache.get("k") is None
    assert cache.misses == 1


def test_cache_evicts_least_recently_used():
    cache = ResponseCache(max_size=2, ttl_seconds=100)
    cache.set("a", "1")
    cache.set("b", "2")
    cache.get("a")
    cache.set("c", "3")

    assert cache.get("b") is None
    assert cache.get("a") == "1"
    assert len(cache) == 2


def test_cache_key_depends_on_options():
    assert ResponseCache.key("x", {"level": 2}) != ResponseCache.key("x", {"level": 3})
    assert ResponseCache.key("x", {"a": 1, "b": 2}) == ResponseCache.key("x", {"b": 2, "a": 1})


# ==================== 팩토리 / 어댑터 ====================

def test_refinement_llm_disabled_without_keys(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)

    assert LLMFactory.create_refinement_llm(LLMSettings()) is None


def make_settings(provider, openai_key=None, openrouter_key=None):
    settings = LLMSettings()
    settings.PROVIDER = provider
    settings.MODEL = "openai/gpt-4o-mini"
    settings.TIMEOUT_MS = 15000
    settings.OPENAI_API_KEY = openai_key
    settings.OPENROUTER_API_KEY = openrouter_key
    return settings


def test_refinement_llm_for_openai_provider():
    llm = LLMFactory.create_refinement_llm(make_settings("openai", openai_key="sk-test"))

    assert isinstance(llm, OpenAILLM)
    assert llm.config.api_key == "sk-test"
    assert llm.config.model_name == "gpt-4o-mini"
    assert llm.config.timeout == 15
    assert llm.is_available()


def test_missing_provider_key_uses_other_provider():
    llm = LLMFactory.create_refinement_llm(make_settings("openai", openrouter_key="or-test"))

    assert isinstance(llm, OpenRouterLLM)
    assert llm.config.model_name == "openai/gpt-4o-mini"


def test_unknown_provider_name_uses_fallback_order():
    settings = make_settings("gemini", openai_key="sk-test", openrouter_key="or-test")

    assert LLMFactory.select_provider(settings) == LLMProvider.OPENROUTER
    status = LLMFactory.provider_status(settings)
    assert status["openrouter"] == {"available": True, "active": True}
    assert status["openai"] == {"available": True, "active": False}


class RecordingLLM(BaseLLM):
    def __init__(self, content=None, error=None):
        super().__init__(config=None)
        self.content = content
        self.error = error
        self.kwargs = {}

    def _init_client(self):
        pass

    def generate(self, prompt, system_prompt=None, **kwargs):
        if self.error:
            raise self.error
        self.kwargs = kwargs
        return LLMResponse(content=self.content, model="fake")


def test_adapter_passes_parameters():
    llm = RecordingLLM(content="承知いたしました")
    adapter = LLMBackendAdapter(llm)

    assert adapter.generate("prompt", 200, 0.3, 500) == "承知いたしました"
    assert llm.kwargs == {"max_tokens": 200, "temperature": 0.3, "timeout": 1}


def test_adapter_wraps_errors():
    adapter = LLMBackendAdapter(RecordingLLM(error=ConnectionError("down")))

    with pytest.raises(LLMBackendError):
        adapter.generate("prompt", 200, 0.3, 15000)
