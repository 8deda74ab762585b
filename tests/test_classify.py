import pytest

from gitver.classify import Classification, classify, compile_patterns
from gitver.config import DEFAULT_MAJOR_PATTERN, DEFAULT_MINOR_PATTERN
from gitver.errors import PatternCompileError


@pytest.fixture
def patterns():
    return compile_patterns(DEFAULT_MAJOR_PATTERN, DEFAULT_MINOR_PATTERN)


def test_default_patterns(patterns):
    assert classify("breaking: drop python 3.9", patterns) is Classification.MAJOR
    assert classify("refactor config\n\n+semver:major", patterns) is Classification.MAJOR
    assert classify("feature: add --path", patterns) is Classification.MINOR
    assert classify("fix: off by one", patterns) is Classification.PATCH


def test_major_wins_over_minor(patterns):
    assert classify("feature: new api (breaking)", patterns) is Classification.MAJOR


def test_substring_search_not_full_match(patterns):
    assert classify("add a small feature to the walker", patterns) is Classification.MINOR


def test_case_sensitive(patterns):
    assert classify("BREAKING: shout", patterns) is Classification.PATCH
    assert classify("Feature: capitalised", patterns) is Classification.PATCH


def test_empty_message_is_patch(patterns):
    assert classify("", patterns) is Classification.PATCH


def test_custom_patterns():
    p = compile_patterns(r"^feat!", r"^feat(\(.*\))?:")
    assert classify("feat!: remove endpoint", p) is Classification.MAJOR
    assert classify("feat(cli): add flag", p) is Classification.MINOR
    assert classify("chore: bump deps", p) is Classification.PATCH


def test_invalid_major_pattern():
    with pytest.raises(PatternCompileError) as exc:
        compile_patterns("(breaking", DEFAULT_MINOR_PATTERN)
    assert "major-regex" in str(exc.value) and exc.value.stage == "patterns"


def test_invalid_minor_pattern():
    with pytest.raises(PatternCompileError) as exc:
        compile_patterns(DEFAULT_MAJOR_PATTERN, "[feature")
    assert "minor-regex" in str(exc.value)
