"""
파이프라인 예외 정의

변환/학습 경계에서 모두 잡혀서 저신뢰 결과로 바뀜.
호출자에게 그대로 전파되는 경우는 없음.
"""


class KeigoPipelineError(Exception):
    """파이프라인 공통 예외"""


class ConversionError(KeigoPipelineError):
    """규칙 기반 변환 단계 실패"""


class LLMBackendError(KeigoPipelineError):
    """외부 LLM 백엔드 호출 실패"""


class LLMTimeoutError(LLMBackendError):
    """외부 LLM 백엔드 타임아웃"""


class StorageError(KeigoPipelineError):
    """상태 저장소 읽기/쓰기 실패"""
