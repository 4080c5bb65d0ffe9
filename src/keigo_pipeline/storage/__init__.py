"""
Storage Layer

피드백 학습 상태 저장
"""

from .base import StateStore, MemoryStorage
from .json_storage import JsonStorage, StorageConfig

__all__ = [
    "StateStore",
    "MemoryStorage",
    "JsonStorage",
    "StorageConfig",
]
