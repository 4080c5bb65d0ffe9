"""
규칙 기반 변환기

ContextAnalyzer → LexicalConverter → SentenceAssembler
"""

from .context_analyzer import ContextAnalyzer
from .lexical_converter import LexicalConverter, LexicalConversion, LexicalVariation
from .sentence_assembler import SentenceAssembler, LevelVariation, TextComponents

__all__ = [
    "ContextAnalyzer",
    "LexicalConverter",
    "LexicalConversion",
    "LexicalVariation",
    "SentenceAssembler",
    "LevelVariation",
    "TextComponents",
]
