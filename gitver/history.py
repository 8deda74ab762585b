import logging
from collections.abc import Iterator

from .errors import WalkError
from .repository import GitRepository

logger = logging.getLogger("gitver")


def iter_revisions(
    repo: GitRepository, start_id: str, warnings: list[WalkError] | None = None
) -> Iterator[str]:
    """Commits reachable from ``start_id``, ancestors first.

    Per-commit walk failures are logged, appended to ``warnings`` and skipped.
    """
    for rev in repo.walk_revisions(start_id):
        if isinstance(rev, WalkError):
            logger.warning("rev error: %s: %s", rev.commit_id, rev.reason)
            if warnings is not None:
                warnings.append(rev)
            continue
        yield rev


def has_relevant_changes(repo: GitRepository, commit_id: str, path_filter: str | None = None) -> bool:
    # an empty filter means the whole tree
    return repo.diff_against_parent(
        commit_id, path_filter=path_filter or None, ignore_whitespace=True, include_binary=True
    )


def changed_commits(
    repo: GitRepository,
    start_id: str,
    path_filter: str | None = None,
    warnings: list[WalkError] | None = None,
) -> list[str]:
    return [
        commit_id
        for commit_id in iter_revisions(repo, start_id, warnings)
        if has_relevant_changes(repo, commit_id, path_filter)
    ]
