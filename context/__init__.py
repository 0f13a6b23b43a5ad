"""
Context Assembly Module.

Builds the grounded prompt from the diversified context set:
- One block per passage with talk metadata
- A strict "answer only from context" system prompt

Usage:
    from context import assemble_context, build_user_prompt

    assembled = assemble_context(context_set)
    user_prompt = build_user_prompt(assembled.text, question)
"""

from .context_builder import (
    SYSTEM_PROMPT,
    AssembledContext,
    assemble_context,
    build_user_prompt,
    context_entry,
    format_context_entry,
)

__all__ = [
    "SYSTEM_PROMPT",
    "AssembledContext",
    "assemble_context",
    "build_user_prompt",
    "context_entry",
    "format_context_entry",
]
