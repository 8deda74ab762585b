import enum
import re
from typing import NamedTuple

from .errors import PatternCompileError


class Classification(enum.Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"


class Patterns(NamedTuple):
    major: re.Pattern[str]
    minor: re.Pattern[str]


def _compile(kind: str, pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternCompileError(f"{kind}-regex did not compile: {pattern!r} ({e})") from e


def compile_patterns(major: str, minor: str) -> Patterns:
    return Patterns(major=_compile("major", major), minor=_compile("minor", minor))


def classify(message: str, patterns: Patterns) -> Classification:
    """Classify a commit message.

    The patterns are searched anywhere in the message (case-sensitive);
    a message matching both counts as major.
    """
    if patterns.major.search(message or ""):
        return Classification.MAJOR
    if patterns.minor.search(message or ""):
        return Classification.MINOR
    return Classification.PATCH
