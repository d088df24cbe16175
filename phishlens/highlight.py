import logging
from typing import List, Optional, Sequence

from phishlens.schema import HighlightSpan, TextSegment

logger = logging.getLogger(__name__)


def _match_at(
    text: str, position: int, highlights: Sequence[HighlightSpan]
) -> Optional[HighlightSpan]:
    """Longest phrase matching at position; equal lengths keep list order."""
    best = None
    for span in highlights:
        length = len(span.phrase)
        if not length or (best is not None and length <= len(best.phrase)):
            continue
        if text[position : position + length].lower() == span.phrase.lower():
            best = span
    return best


def annotate(text: str, highlights: Sequence[HighlightSpan]) -> List[TextSegment]:
    """
    Split text into plain and highlighted segments.

    Matching is case-insensitive and keeps the casing of the original text.
    When several phrases match at the same position the longest one wins.
    Joining the segment texts always gives back the input text.
    """
    if not text:
        return []
    if not highlights:
        return [TextSegment(text=text)]

    segments: List[TextSegment] = []
    plain_start = 0
    position = 0

    while position < len(text):
        span = _match_at(text, position, highlights)
        if span is None:
            position += 1
            continue

        if plain_start < position:
            segments.append(TextSegment(text=text[plain_start:position]))
        end = position + len(span.phrase)
        segments.append(TextSegment(text=text[position:end], highlight=span))
        position = plain_start = end

    if plain_start < len(text):
        segments.append(TextSegment(text=text[plain_start:]))

    logger.debug(
        "Annotated %d characters into %d segments", len(text), len(segments)
    )
    return segments
