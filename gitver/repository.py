"""Read-only git access used by the version computation.

Wraps GitPython so every failure surfaces as one of the typed errors in
``gitver.errors``. A handle is opened once per computation and never shared.
"""
from collections.abc import Iterator
from dataclasses import dataclass

import git
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from .errors import (
    AheadBehindError,
    BranchResolutionError,
    DiffError,
    RepositoryOpenError,
    RevisionWalkError,
    WalkError,
)


@dataclass(frozen=True)
class CommitRecord:
    id: str
    message: str
    parent_ids: tuple[str, ...]


@dataclass(frozen=True)
class HeadRef:
    target_id: str
    shorthand: str | None  # None when HEAD is detached


@dataclass(frozen=True)
class BranchRef:
    name: str
    target_id: str
    is_head: bool


def _is_change(d: git.Diff) -> bool:
    # with whitespace ignored, a whitespace-only edit carries an empty patch
    if d.new_file or d.deleted_file or d.renamed_file:
        return True
    if d.a_mode != d.b_mode:
        return True
    return bool(d.diff)


class GitRepository:
    def __init__(self, repo: git.Repo):
        self._repo = repo

    @classmethod
    def open(cls, path: str) -> "GitRepository":
        try:
            repo = git.Repo(path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryOpenError(f"cannot open repository at {path!r}: {e}") from e
        return cls(repo)

    def close(self) -> None:
        self._repo.close()

    def __enter__(self) -> "GitRepository":
        return self

    def __exit__(self, *exc) -> bool:
        self.close()
        return False

    @property
    def path(self) -> str:
        return self._repo.working_tree_dir or self._repo.git_dir

    def resolve_head(self) -> HeadRef:
        head = self._repo.head
        try:
            target = head.commit.hexsha
        except ValueError as e:
            # unborn branch: HEAD names a ref that does not exist yet
            raise RevisionWalkError(f"HEAD does not point at a commit: {e}") from e
        shorthand = None if head.is_detached else head.reference.name
        return HeadRef(target_id=target, shorthand=shorthand)

    def walk_revisions(self, start_id: str) -> Iterator[str | WalkError]:
        """Yield commit ids reachable from ``start_id``, oldest ancestor first.

        A commit that cannot be loaded is yielded as a ``WalkError`` instead
        of ending the walk.
        """
        try:
            out = self._repo.git.rev_list("--topo-order", "--reverse", start_id)
        except GitCommandError as e:
            raise RevisionWalkError(f"cannot walk revisions from {start_id}: {e}") from e
        for line in out.splitlines():
            commit_id = line.strip()
            if not commit_id:
                continue
            try:
                self._load(commit_id)
            except Exception as e:
                yield WalkError(commit_id=commit_id, reason=str(e))
                continue
            yield commit_id

    def _load(self, commit_id: str) -> git.Commit:
        commit = self._repo.commit(commit_id)
        commit.tree  # noqa: B018  (commits load lazily; force the object read)
        return commit

    def _commit(self, commit_id: str) -> git.Commit:
        try:
            commit = self._load(commit_id)
        except Exception as e:
            raise DiffError(f"cannot resolve commit {commit_id}: {e}") from e
        return commit

    def find_commit(self, commit_id: str) -> CommitRecord:
        commit = self._commit(commit_id)
        message = commit.message
        if isinstance(message, bytes):
            message = message.decode("utf-8", "replace")
        return CommitRecord(
            id=commit.hexsha,
            message=message or "",
            parent_ids=tuple(p.hexsha for p in commit.parents),
        )

    def diff_against_parent(
        self,
        commit_id: str,
        path_filter: str | None = None,
        ignore_whitespace: bool = True,
        include_binary: bool = True,
    ) -> bool:
        """Return True when the commit changes anything under ``path_filter``.

        The commit is compared with its first parent, or with the empty tree
        when it is a root commit.
        """
        commit = self._commit(commit_id)
        opts = {}
        if ignore_whitespace:
            opts["ignore_all_space"] = True
        if include_binary:
            opts["binary"] = True
        paths = path_filter or None
        try:
            if commit.parents:
                diffs = commit.parents[0].diff(commit, paths=paths, create_patch=True, **opts)
            else:
                diffs = commit.diff(git.NULL_TREE, paths=paths, create_patch=True, **opts)
        except (GitCommandError, ValueError) as e:
            raise DiffError(f"cannot diff commit {commit_id}: {e}") from e
        return any(_is_change(d) for d in diffs)

    def find_branch(self, name: str) -> BranchRef:
        try:
            branch = self._repo.heads[name]
        except IndexError as e:
            raise BranchResolutionError(f"local branch {name!r} not found") from e
        try:
            target = branch.commit.hexsha
        except ValueError as e:
            raise BranchResolutionError(f"branch {name!r} has no target: {e}") from e
        head = self._repo.head
        is_head = not head.is_detached and head.reference.path == branch.path
        return BranchRef(name=branch.name, target_id=target, is_head=is_head)

    def ahead_behind(self, local_id: str, upstream_id: str) -> tuple[int, int]:
        try:
            out = self._repo.git.rev_list("--left-right", "--count", f"{local_id}...{upstream_id}")
            ahead, behind = (int(n) for n in out.split())
        except (GitCommandError, ValueError) as e:
            raise AheadBehindError(
                f"cannot count commits between {local_id} and {upstream_id}: {e}"
            ) from e
        return ahead, behind
