import random
from datetime import datetime

import pytest

from keigo_pipeline.config import ConversionConfig, LLMSettings
from keigo_pipeline.converters import ContextAnalyzer, SentenceAssembler
from keigo_pipeline.engine import ConversionOrchestrator
from keigo_pipeline.learning import FeedbackLearner
from keigo_pipeline.storage import MemoryStorage


FIXED_NOW = datetime(2024, 6, 3, 20, 0, 0)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def analyzer(fixed_clock):
    return ContextAnalyzer(clock=fixed_clock)


@pytest.fixture
def assembler():
    return SentenceAssembler(rng=random.Random(7))


@pytest.fixture
def learner():
    return FeedbackLearner(store=MemoryStorage())


@pytest.fixture
def make_orchestrator(fixed_clock):
    """환경변수와 무관한 설정으로 오케스트레이터 생성"""
    def _make(backend=None, timeout_ms=15000, history_limit=100, learner=None, **kwargs):
        llm_settings = LLMSettings()
        llm_settings.TIMEOUT_MS = timeout_ms

        config = ConversionConfig()
        config.DEFAULT_LEVEL = 3
        config.HISTORY_LIMIT = history_limit

        return ConversionOrchestrator(
            analyzer=ContextAnalyzer(clock=fixed_clock),
            learner=learner or FeedbackLearner(store=MemoryStorage()),
            llm_backend=backend,
            config=config,
            llm_settings=llm_settings,
            rng=random.Random(11),
            **kwargs,
        )
    return _make


@pytest.fixture
def orchestrator(make_orchestrator):
    return make_orchestrator()
