"""
Build Status Classification
==========================

Maps a CI feed item title such as ``"myjob #3 broken since build #2"`` to a
status label.
"""

from typing import List, Tuple

from ..models import BuildStatus


# Checked in order against the status phrase; first match wins.
STATUS_PHRASES: List[Tuple[str, BuildStatus]] = [
    ("broken since", BuildStatus.STILL_FAILING),
    ("back to normal", BuildStatus.NOW_FIXED),
    ("stable", BuildStatus.STILL_OK),
    ("aborted", BuildStatus.SUPPRESSED),
]


def classify_title(title: str) -> str:
    """Classify a feed item title.

    The title is expected to hold a job identifier, a build number and a
    status phrase. The phrase itself may contain spaces.

    Args:
        title: Feed item title

    Returns:
        One of the BuildStatus values, ``"UNKNOWN(<phrase>)"`` for an
        unrecognised phrase, or ``""`` when the item should be suppressed
    """
    # Runs of whitespace count as one separator, so padding never yields an empty phrase
    parts = title.split(maxsplit=2)
    if len(parts) != 3:
        return BuildStatus.UNKNOWN.value

    phrase = parts[2]
    for needle, status in STATUS_PHRASES:
        if needle in phrase:
            return status.value

    return f"{BuildStatus.UNKNOWN.value}({phrase})"


def is_suppressed(status: str) -> bool:
    return status == BuildStatus.SUPPRESSED.value
