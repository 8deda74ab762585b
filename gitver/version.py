"""Turn classified commit history plus branch context into a semantic version.

Counting starts from ``0.1.0``. The earliest commit that changed anything
under the path filter is the baseline and is never classified; every later
change-bearing commit bumps exactly one of major, minor or patch. Off the main
branch the sanitized branch name becomes the prerelease and the number of
commits ahead of main becomes the build metadata.
"""
import logging
import re
from dataclasses import dataclass, field

import semver

from .classify import Classification, Patterns, classify, compile_patterns
from .config import Settings
from .errors import BranchResolutionError, VersionConstructionError, WalkError
from .history import changed_commits
from .repository import GitRepository, HeadRef

logger = logging.getLogger("gitver")

_BRANCH_NAME_RE = re.compile(r"(/|_)")


@dataclass
class VersionCounts:
    major: int = 0
    minor: int = 1
    patch: int = 0

    def record(self, kind: Classification) -> None:
        if kind is Classification.MAJOR:
            self.major += 1
        elif kind is Classification.MINOR:
            self.minor += 1
        else:
            self.patch += 1


@dataclass(frozen=True)
class BranchContext:
    current_branch_name: str
    is_main_branch: bool
    ahead_count: int


@dataclass
class VersionReport:
    version: semver.Version
    counts: VersionCounts
    branch: BranchContext
    retained: list[str] = field(default_factory=list)
    warnings: list[WalkError] = field(default_factory=list)


def sanitize_branch_name(name: str) -> str:
    return _BRANCH_NAME_RE.sub("-", name)


def count_commits(repo: GitRepository, retained: list[str], patterns: Patterns) -> VersionCounts:
    counts = VersionCounts()
    # TODO: only squash merges onto main are counted correctly; merge commits
    # should be classified through their merged-in history as well
    for commit_id in retained[1:]:
        commit = repo.find_commit(commit_id)
        counts.record(classify(commit.message, patterns))
    return counts


def resolve_branch_context(repo: GitRepository, head: HeadRef, main_branch_name: str) -> BranchContext:
    main = repo.find_branch(main_branch_name)
    if not head.shorthand:
        raise BranchResolutionError("invalid branch name: HEAD is detached")
    ahead, _behind = repo.ahead_behind(head.target_id, main.target_id)
    return BranchContext(
        current_branch_name=head.shorthand, is_main_branch=main.is_head, ahead_count=ahead
    )


def compose_version(counts: VersionCounts, branch: BranchContext) -> semver.Version:
    if branch.is_main_branch:
        return semver.Version(counts.major, counts.minor, counts.patch)
    prerelease = sanitize_branch_name(branch.current_branch_name)
    build = str(branch.ahead_count)
    text = f"{counts.major}.{counts.minor}.{counts.patch}-{prerelease}+{build}"
    try:
        return semver.Version.parse(text)
    except ValueError as e:
        raise VersionConstructionError(
            f"invalid prerelease {prerelease!r} or build {build!r}: {e}"
        ) from e


def derive_version(
    repo: GitRepository,
    patterns: Patterns,
    path_filter: str | None = None,
    main_branch_name: str = "main",
) -> VersionReport:
    warnings: list[WalkError] = []
    head = repo.resolve_head()
    retained = changed_commits(repo, head.target_id, path_filter, warnings)
    logger.debug("%d commits with changes under %s", len(retained), path_filter or "<all>")
    counts = count_commits(repo, retained, patterns)
    branch = resolve_branch_context(repo, head, main_branch_name)
    version = compose_version(counts, branch)
    return VersionReport(
        version=version, counts=counts, branch=branch, retained=retained, warnings=warnings
    )


def compute_version(settings: Settings) -> VersionReport:
    # patterns are validated before the repository is touched
    patterns = compile_patterns(settings.major_pattern, settings.minor_pattern)
    with GitRepository.open(settings.repo_path) as repo:
        return derive_version(repo, patterns, settings.path_filter, settings.main_branch_name)
