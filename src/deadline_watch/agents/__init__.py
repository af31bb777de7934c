"""LangChain agents for deadline extraction."""

from .base import BaseAgent
from .deadline_analyzer import DeadlineAnalyzer, parse_analysis, strip_code_fence

__all__ = [
    "BaseAgent",
    "DeadlineAnalyzer",
    "parse_analysis",
    "strip_code_fence",
]
