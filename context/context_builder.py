"""
Context assembly and prompt construction.

Treat prompt context as a resource with a budget: the reranker already
bounds how many passages reach this point, and every passage carries
its talk metadata so the model can cite title, speaker and link.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

from reranking.diversity_reranker import Candidate

logger = logging.getLogger(__name__)

ENTRY_SEPARATOR = "\n\n"

SYSTEM_PROMPT = (
    "You are a talk transcript assistant that answers questions strictly and only "
    "based on the talk dataset context provided to you (metadata and transcript "
    "passages). You must not use any external knowledge, the open internet, or "
    "information that is not explicitly contained in the retrieved context. If the "
    "answer cannot be determined from the provided context, respond: "
    "\"I don't know based on the provided talk data.\" Always explain your answer "
    "using the given context, quoting or paraphrasing the relevant transcript or "
    "metadata when helpful."
)


@dataclass
class AssembledContext:
    """Assembled context ready for the completion prompt."""

    text: str
    sources: List[Dict]
    approx_tokens: int
    chunks_included: int


def context_entry(candidate: Candidate) -> Dict:
    """Flatten a candidate's payload into the fields shown to the model and client."""
    payload = candidate.payload
    return {
        "talk_id": payload.get("document_id", candidate.document_id),
        "title": payload.get("title"),
        "chunk": payload.get("chunk_text"),
        "score": candidate.score,
        "author": payload.get("author"),
        "description": payload.get("description"),
        "topics": payload.get("topics"),
        "views": payload.get("views"),
        "published_date": payload.get("published_date"),
        "url": payload.get("url"),
    }


def format_context_entry(entry: Dict) -> str:
    """
    Format one passage with its talk metadata.

    Example:
        Title: Why we sleep
        Speaker: Jane Doe
        ...
        Content: <passage text>
        ----------------
    """
    return (
        f"Title: {entry['title']}\n"
        f"Speaker: {entry['author']}\n"
        f"Description: {entry['description'] or 'N/A'}\n"
        f"Topics: {entry['topics'] or 'N/A'}\n"
        f"Views: {entry['views'] or 'N/A'}\n"
        f"Published: {entry['published_date'] or 'N/A'}\n"
        f"Link: {entry['url']}\n"
        f"Talk ID: {entry['talk_id']}\n"
        f"Content: {entry['chunk']}\n"
        "----------------"
    )


def assemble_context(
    candidates: List[Candidate],
    chars_per_token: int = 4,
) -> AssembledContext:
    """
    Assemble the context block from a diversified candidate set.

    Args:
        candidates: Final context set, in descending score order
        chars_per_token: Ratio used to approximate the token count

    Returns:
        AssembledContext with formatted text and source entries
    """
    sources = [context_entry(c) for c in candidates]
    text = ENTRY_SEPARATOR.join(format_context_entry(s) for s in sources)

    return AssembledContext(
        text=text,
        sources=sources,
        approx_tokens=len(text) // chars_per_token,
        chunks_included=len(sources),
    )


def build_user_prompt(context: str, question: str) -> str:
    """Combine the assembled context and the user's question."""
    return f"Context:\n{context}\n\nQuestion: {question}"
