from dataclasses import dataclass


class GitVersionError(Exception):
    """Fatal failure of a version computation; ``stage`` names where it happened."""

    stage = "version"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"


class RepositoryOpenError(GitVersionError):
    stage = "open"


class PatternCompileError(GitVersionError):
    stage = "patterns"


class RevisionWalkError(GitVersionError):
    stage = "walk"


class DiffError(GitVersionError):
    stage = "diff"


class BranchResolutionError(GitVersionError):
    stage = "branch"


class AheadBehindError(GitVersionError):
    stage = "ahead_behind"


class VersionConstructionError(GitVersionError):
    stage = "compose"


@dataclass(frozen=True)
class WalkError:
    # per-commit walk failure: reported and skipped, never raised
    commit_id: str
    reason: str
