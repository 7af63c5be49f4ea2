"""Validity checks for generated titles."""
import logging
from typing import Optional

from pipeline.errors import TitleValidationError
from shared.config import settings

logger = logging.getLogger(__name__)


def jaccard_similarity(first: str, second: str) -> float:
    """Word-level Jaccard similarity of two strings, case-insensitive."""
    words1 = set(first.lower().split())
    words2 = set(second.lower().split())

    if not words1 and not words2:
        return 1.0
    if not words1 or not words2:
        return 0.0

    return len(words1 & words2) / len(words1 | words2)


def validate_title(
    generated: str,
    original: Optional[str] = None,
    min_length: int = None,
    threshold: float = None,
) -> str:
    """
    Reject titles that are too short or too close to the original.

    With no original title only the length check applies.
    """
    min_length = settings.title_min_length if min_length is None else min_length
    threshold = settings.title_similarity_threshold if threshold is None else threshold

    if len(generated) < min_length:
        raise TitleValidationError(
            f"Generated title failed strict validation: too short ({len(generated)} < {min_length})"
        )

    if original:
        if generated.lower() == original.lower():
            raise TitleValidationError("Generated title failed strict validation: identical to the original")

        similarity = jaccard_similarity(generated, original)
        if similarity > threshold:
            logger.error(
                f'Generated title "{generated}" too similar to "{original}": '
                f"Jaccard {similarity:.2f} > {threshold}"
            )
            raise TitleValidationError(
                f"Generated title failed strict validation: too similar to the original ({similarity:.2f})"
            )

    return generated
