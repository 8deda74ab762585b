import git
import pytest

from gitver.errors import BranchResolutionError, RevisionWalkError, WalkError
from gitver.repository import BranchRef, CommitRecord, HeadRef


class RepoBuilder:
    """Throwaway on-disk repository whose unborn branch is ``main``."""

    def __init__(self, path):
        self.path = path
        self.repo = git.Repo.init(path)
        with self.repo.config_writer() as cw:
            cw.set_value("user", "name", "Test User")
            cw.set_value("user", "email", "test@example.com")
            cw.set_value("commit", "gpgsign", "false")
        self.repo.git.symbolic_ref("HEAD", "refs/heads/main")

    def commit(self, message: str, files: dict | None = None) -> str:
        for name, content in (files or {}).items():
            p = self.path / name
            p.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                p.write_bytes(content)
            else:
                p.write_text(content, encoding="utf-8")
            self.repo.git.add(name)
        args = ["-m", message]
        if not files:
            args.append("--allow-empty")
        self.repo.git.commit(*args)
        return self.repo.head.commit.hexsha


@pytest.fixture
def make_repo(tmp_path):
    def _make(name: str = "repo") -> RepoBuilder:
        return RepoBuilder(tmp_path / name)

    return _make


@pytest.fixture
def release_history(make_repo):
    """main with root, feature, breaking and fix commits (version 1.2.1)."""
    b = make_repo()
    b.commit("initial import", {"a.txt": "one\n"})
    b.commit("feature: x", {"a.txt": "one\ntwo\n"})
    b.commit("breaking: y", {"b.txt": "bee\n"})
    b.commit("fix: z", {"a.txt": "one\ntwo\nthree\n"})
    return b


class FakeRepository:
    """In-memory stand-in for ``GitRepository``.

    ``commits`` is a list of ``(id, message, changed)`` in walk order; an
    entry may also be a ``WalkError`` to simulate an unreadable commit.
    """

    def __init__(
        self,
        commits,
        branch: str | None = "main",
        main_branch: str = "main",
        main_is_head: bool = True,
        ahead: int = 0,
    ):
        self.commits = commits
        self.branch = branch
        self.main_branch = main_branch
        self.main_is_head = main_is_head
        self.ahead = ahead
        self.diff_calls = []

    def _records(self):
        return {c[0]: c for c in self.commits if not isinstance(c, WalkError)}

    def resolve_head(self) -> HeadRef:
        if not self.commits:
            raise RevisionWalkError("HEAD does not point at a commit")
        return HeadRef(target_id="HEAD", shorthand=self.branch)

    def walk_revisions(self, start_id):
        for c in self.commits:
            yield c if isinstance(c, WalkError) else c[0]

    def find_commit(self, commit_id) -> CommitRecord:
        cid, message, _changed = self._records()[commit_id]
        return CommitRecord(id=cid, message=message, parent_ids=())

    def diff_against_parent(self, commit_id, path_filter=None, ignore_whitespace=True, include_binary=True):
        self.diff_calls.append((commit_id, path_filter))
        return self._records()[commit_id][2]

    def find_branch(self, name) -> BranchRef:
        if name != self.main_branch:
            raise BranchResolutionError(f"local branch {name!r} not found")
        return BranchRef(name=name, target_id="MAIN", is_head=self.main_is_head)

    def ahead_behind(self, local_id, upstream_id):
        return self.ahead, 0


@pytest.fixture
def fake_repo():
    return FakeRepository
