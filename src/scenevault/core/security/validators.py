"""Security validators for identifiers that end up in filesystem paths."""

import re
from typing import Final

# Must stay in sync with the access layer's routing pattern
PROJECT_UID_REGEX: Final[str] = r"^[a-f0-9-]+$"
MAX_PROJECT_UID_LENGTH: Final[int] = 64

STORAGE_SEGMENT_REGEX: Final[str] = r"^[A-Za-z0-9_-]+$"
MAX_STORAGE_SEGMENT_LENGTH: Final[int] = 128

_PROJECT_UID_PATTERN: Final[re.Pattern[str]] = re.compile(PROJECT_UID_REGEX)
_STORAGE_SEGMENT_PATTERN: Final[re.Pattern[str]] = re.compile(STORAGE_SEGMENT_REGEX)


def is_valid_project_uid(uid: object) -> bool:
    """Return True if ``uid`` is a string in the project id alphabet."""
    return (
        isinstance(uid, str)
        and 0 < len(uid) <= MAX_PROJECT_UID_LENGTH
        and _PROJECT_UID_PATTERN.fullmatch(uid) is not None
    )


def validate_project_uid(uid: str) -> str:
    """Validate a project uid, raising ValueError if it is outside the alphabet."""
    if not is_valid_project_uid(uid):
        raise ValueError(f"Invalid project uid: {uid!r}")
    return uid


def validate_storage_segment(segment: str) -> str:
    """Validate one namespace segment or key.

    Segments must:
    - Contain only letters, digits, underscores and hyphens
    - Be non-empty and at most 128 characters

    This rules out path separators, ``..`` and hidden (dot-prefixed) names,
    which the store reserves for its temp files and tombstones.

    Raises:
        ValueError: If the segment is invalid
    """
    if not isinstance(segment, str) or not segment:
        raise ValueError("Storage segment must be a non-empty string")
    if len(segment) > MAX_STORAGE_SEGMENT_LENGTH:
        raise ValueError(
            f"Storage segment exceeds length limit: {len(segment)} > {MAX_STORAGE_SEGMENT_LENGTH}"
        )
    if not _STORAGE_SEGMENT_PATTERN.fullmatch(segment):
        raise ValueError(f"Invalid storage segment: {segment!r}")
    return segment
