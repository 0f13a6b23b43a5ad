"""
Boundary-aware unit splitting.

Units are the indivisible spans the chunker packs into passages:
paragraphs, sentences, and the separators between them. Separators
are kept as their own units so that joining every unit reproduces
the input exactly.
"""

import logging
import re
from typing import List

logger = logging.getLogger(__name__)

# Paragraphs longer than this are broken down to sentences
SENTENCE_SPLIT_THRESHOLD = 200

_PARAGRAPH_BOUNDARY = re.compile(r"(\n\n)")
_SENTENCE_BOUNDARY = re.compile(r"([.!?]\s+)")


def split_paragraphs(text: str) -> List[str]:
    """
    Split text on double newlines, keeping each separator as a unit.

    Returns:
        Paragraph and separator units, possibly including empty strings
    """
    return _PARAGRAPH_BOUNDARY.split(text)


def split_sentences(paragraph: str) -> List[str]:
    """
    Split a paragraph on sentence-ending punctuation followed by whitespace.

    The delimiter (e.g. ". ") is returned as its own unit.
    """
    return _SENTENCE_BOUNDARY.split(paragraph)


def split_into_units(
    text: str,
    sentence_split_threshold: int = SENTENCE_SPLIT_THRESHOLD,
) -> List[str]:
    """
    Decompose text into an ordered list of units.

    Two-level policy:
    - Double-newline boundaries first
    - Paragraphs longer than the threshold are split by sentence

    Args:
        text: Document text
        sentence_split_threshold: Paragraph length above which sentences are split

    Returns:
        Non-empty units whose concatenation equals ``text``

    Example:
        >>> split_into_units("Intro.\\n\\nBody")
        ['Intro.', '\\n\\n', 'Body']
    """
    units: List[str] = []

    for paragraph in split_paragraphs(text):
        if len(paragraph) > sentence_split_threshold:
            units.extend(split_sentences(paragraph))
        else:
            units.append(paragraph)

    return [u for u in units if u]
