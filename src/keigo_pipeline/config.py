"""
케이고 파이프라인 설정

모든 경로 및 설정값을 중앙 관리
환경변수로 오버라이드 가능
"""

import os
from pathlib import Path
from dataclasses import dataclass
from dotenv import load_dotenv

# .env 파일 로드
load_dotenv()


def get_project_root() -> Path:
    """
    프로젝트 루트 디렉토리 반환

    src/keigo_pipeline/config.py 기준으로 상위 2단계
    """
    return Path(__file__).parent.parent.parent


def _env_int(name: str, default: int) -> int:
    """정수 환경변수 (파싱 실패 시 기본값)"""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class PathConfig:
    """경로 설정"""
    # 프로젝트 루트
    PROJECT_ROOT: Path = get_project_root()

    # 데이터 경로
    DATA_DIR: Path = None
    STATE_DIR: Path = None

    def __post_init__(self):
        """환경변수 또는 기본값으로 초기화"""
        self.DATA_DIR = Path(os.getenv("KEIGO_DATA_DIR", self.PROJECT_ROOT / "data"))
        self.STATE_DIR = Path(os.getenv("KEIGO_STATE_DIR", self.DATA_DIR / "state"))


@dataclass
class LLMSettings:
    """LLM 설정 (선택적 리파인 레이어)"""
    # API 키 (환경변수에서 로드)
    OPENAI_API_KEY: str = None
    OPENROUTER_API_KEY: str = None

    # 기본 모델
    PROVIDER: str = "openrouter"
    MODEL: str = "openai/gpt-4o-mini"

    # 호출 파라미터
    MAX_TOKENS: int = 200
    TEMPERATURE: float = 0.3
    TIMEOUT_MS: int = 15000

    # 응답 캐시
    CACHE_MAX_SIZE: int = 1000
    CACHE_TTL_SECONDS: int = 30 * 60

    def __post_init__(self):
        """환경변수에서 API 키 / 모델 로드"""
        self.OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
        self.OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
        self.PROVIDER = os.getenv("KEIGO_LLM_PROVIDER", self.PROVIDER)
        self.MODEL = os.getenv("KEIGO_LLM_MODEL", self.MODEL)
        self.TIMEOUT_MS = _env_int("KEIGO_LLM_TIMEOUT_MS", self.TIMEOUT_MS)

    @property
    def enabled(self) -> bool:
        """API 키가 하나라도 있으면 LLM 리파인 사용 가능"""
        return bool(self.OPENAI_API_KEY or self.OPENROUTER_API_KEY)


@dataclass
class ConversionConfig:
    """변환 파이프라인 설정"""
    # 기본 정중함 레벨 (1~5)
    DEFAULT_LEVEL: int = 3

    # 변환 이력 최대 보관 수 (FIFO)
    HISTORY_LIMIT: int = 100

    # 선호도 갱신 윈도우
    LEVEL_WINDOW: int = 5        # 최근 5건 평균 레벨
    APPROACH_WINDOW: int = 10    # 최근 10건 최빈 approach

    def __post_init__(self):
        self.DEFAULT_LEVEL = _env_int("KEIGO_DEFAULT_LEVEL", self.DEFAULT_LEVEL)
        self.HISTORY_LIMIT = _env_int("KEIGO_HISTORY_LIMIT", self.HISTORY_LIMIT)


@dataclass
class LearningConfig:
    """피드백 학습 설정"""
    # 신뢰도 증가폭 / 상한
    NEGATIVE_STEP: float = 0.10
    NEGATIVE_CAP: float = 0.95
    POSITIVE_STEP: float = 0.15
    POSITIVE_CAP: float = 0.95
    CORRECTION_STEP: float = 0.20
    CORRECTION_CAP: float = 0.90

    # 회피 패턴으로 승격되는 신뢰도
    AVOID_THRESHOLD: float = 0.5

    # 상태 저장 키
    STATE_KEY: str = "keigo_learning_state"


# 전역 설정 인스턴스
paths = PathConfig()
llm = LLMSettings()
conversion = ConversionConfig()
learning = LearningConfig()


def get_config():
    """
    전체 설정 반환

    사용 예시:
        from keigo_pipeline.config import get_config
        config = get_config()
        print(config['conversion'].HISTORY_LIMIT)
    """
    return {
        'paths': paths,
        'llm': llm,
        'conversion': conversion,
        'learning': learning,
    }
