"""
Generation Module.

Grounded answer generation from the diversified context set.

Usage:
    from generation import get_answer_pipeline

    result = get_answer_pipeline().answer("Which talks discuss creativity?")
"""

from .answer_pipeline import AnswerPipeline, AnswerResult, get_answer_pipeline
from .llm_client import LLMClient, LLMResponse

__all__ = [
    "AnswerPipeline",
    "AnswerResult",
    "get_answer_pipeline",
    "LLMClient",
    "LLMResponse",
]
