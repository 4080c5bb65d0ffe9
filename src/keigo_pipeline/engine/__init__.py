"""
변환 오케스트레이션
"""

from .orchestrator import ConversionOrchestrator, ConversionPreferences

__all__ = [
    "ConversionOrchestrator",
    "ConversionPreferences",
]
