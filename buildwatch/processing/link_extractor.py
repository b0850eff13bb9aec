"""
Pull Request Link Extraction
===========================

Finds the pull request number referenced by a CI feed item body, which
embeds an anchor like ``<a href="https://github.com/org/repo/pull/42">``.
"""

import re
from dataclasses import dataclass
from typing import Optional

from ..utils.exceptions import ErrorCode


PULL_MARKER = "/pull/"

_DIGITS = re.compile(r"[0-9]+")


@dataclass
class ExtractionResult:
    """Outcome of pull request extraction: a number, or a reason to skip."""

    success: bool
    pull_number: Optional[int] = None
    reason: Optional[ErrorCode] = None

    @classmethod
    def found(cls, pull_number: int) -> "ExtractionResult":
        return cls(success=True, pull_number=pull_number)

    @classmethod
    def skip(cls, reason: ErrorCode) -> "ExtractionResult":
        return cls(success=False, reason=reason)


def extract_pull_number(content: Optional[str]) -> ExtractionResult:
    """Extract the pull request number from an item body.

    Takes the text after the first ``/pull/`` up to the next double quote
    and requires it to be a plain non-negative integer.

    Args:
        content: Item body text

    Returns:
        ExtractionResult with the number, or a skip outcome naming the reason
    """
    if not content:
        return ExtractionResult.skip(ErrorCode.EXTRACTION_NO_CONTENT)

    start = content.find(PULL_MARKER)
    if start < 0:
        return ExtractionResult.skip(ErrorCode.EXTRACTION_NO_PULL_REFERENCE)

    rest = content[start + len(PULL_MARKER):]
    end = rest.find('"')
    if end < 0:
        return ExtractionResult.skip(ErrorCode.EXTRACTION_NO_PULL_REFERENCE)

    number_text = rest[:end]
    if not _DIGITS.fullmatch(number_text):
        return ExtractionResult.skip(ErrorCode.EXTRACTION_INVALID_NUMBER)

    return ExtractionResult.found(int(number_text))
