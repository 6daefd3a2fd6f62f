"""Tests for the local git change source.

The parser tests run anywhere; the repository tests build a throwaway repo
in tmp_path and are skipped when git is not installed.
"""

import shutil
import subprocess

import pytest

from revlens_core.models import ChangeKind
from revlens_core.sources.base import RepositoryNotFoundError, RevisionNotFoundError
from revlens_core.sources.local import LocalGitSource, parse_name_status, parse_numstat

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


class TestParseNameStatus:
    def test_basic_statuses(self):
        output = "A\0new.py\0M\0changed.py\0D\0gone.py\0T\0link\0"
        assert parse_name_status(output) == [
            (ChangeKind.ADDED, None, "new.py"),
            (ChangeKind.MODIFIED, None, "changed.py"),
            (ChangeKind.DELETED, None, "gone.py"),
            (ChangeKind.MODIFIED, None, "link"),
        ]

    def test_rename_carries_old_path(self):
        assert parse_name_status("R087\0old name.py\0new name.py\0") == [
            (ChangeKind.RENAMED, "old name.py", "new name.py")
        ]

    def test_copy_is_an_addition(self):
        assert parse_name_status("C100\0a.py\0b.py\0") == [(ChangeKind.ADDED, None, "b.py")]

    def test_empty_output(self):
        assert parse_name_status("") == []


class TestParseNumstat:
    def test_counts(self):
        assert parse_numstat("3\t1\ta.py\0" "10\t0\tb.py\0") == {"a.py": (3, 1), "b.py": (10, 0)}

    def test_binary_counts_as_zero(self):
        assert parse_numstat("-\t-\tlogo.png\0") == {"logo.png": (0, 0)}

    def test_rename_uses_new_path(self):
        assert parse_numstat("2\t2\t\0old.py\0new.py\0") == {"new.py": (2, 2)}


def _git(repo, *args):
    subprocess.run(
        ["git", "-c", "user.name=Test User", "-c", "user.email=test@example.com", "-c", "commit.gpgsign=false", *args],
        cwd=repo,
        check=True,
        capture_output=True,
    )


def _head(repo):
    return subprocess.run(
        ["git", "rev-parse", "HEAD"], cwd=repo, check=True, capture_output=True, text=True
    ).stdout.strip()


@pytest.fixture
def repo(tmp_path):
    _git(tmp_path, "init", "-q")
    _git(tmp_path, "symbolic-ref", "HEAD", "refs/heads/main")
    (tmp_path / "app.py").write_text("def main():\n    return 1\n")
    (tmp_path / "old.py").write_text("x = 1\ny = 2\nz = 3\n")
    (tmp_path / "remove.py").write_text("print('bye')\n")
    _git(tmp_path, "add", ".")
    _git(tmp_path, "commit", "-q", "-m", "Initial commit")
    return tmp_path


@requires_git
class TestLocalGitSource:
    def test_commit_changes(self, repo):
        (repo / "app.py").write_text("def main():\n    return 2\n")
        (repo / "new.py").write_text("import os\n")
        (repo / "remove.py").unlink()
        _git(repo, "add", "-A")
        _git(repo, "commit", "-q", "-m", "Second commit")

        changes = {c.path: c for c in LocalGitSource().get_changes(str(repo), "HEAD")}

        assert changes["app.py"].kind == ChangeKind.MODIFIED
        assert changes["app.py"].old_content == "def main():\n    return 1\n"
        assert changes["app.py"].new_content == "def main():\n    return 2\n"
        assert (changes["app.py"].lines_added, changes["app.py"].lines_deleted) == (1, 1)
        assert "+    return 2" in changes["app.py"].patch
        assert changes["new.py"].kind == ChangeKind.ADDED
        assert changes["new.py"].old_content == ""
        assert changes["remove.py"].kind == ChangeKind.DELETED
        assert changes["remove.py"].old_content == "print('bye')\n"
        assert changes["remove.py"].new_content == ""

    def test_rename_detected(self, repo):
        _git(repo, "mv", "old.py", "renamed.py")
        _git(repo, "commit", "-q", "-m", "Rename")

        changes = LocalGitSource().get_changes(str(repo), "HEAD")

        assert len(changes) == 1
        assert changes[0].kind == ChangeKind.RENAMED
        assert changes[0].path == "renamed.py"
        assert changes[0].old_path == "old.py"
        assert changes[0].new_content == "x = 1\ny = 2\nz = 3\n"

    def test_root_commit_has_no_changes(self, repo):
        assert LocalGitSource().get_changes(str(repo), "HEAD") == []

    def test_merge_commit_has_no_changes(self, repo):
        _git(repo, "checkout", "-q", "-b", "feature")
        (repo / "feature.py").write_text("f = 1\n")
        _git(repo, "add", ".")
        _git(repo, "commit", "-q", "-m", "Feature")
        _git(repo, "checkout", "-q", "main")
        (repo / "main.py").write_text("m = 1\n")
        _git(repo, "add", ".")
        _git(repo, "commit", "-q", "-m", "Main work")
        _git(repo, "merge", "-q", "--no-ff", "--no-edit", "feature")

        assert LocalGitSource().get_changes(str(repo), "HEAD") == []

    def test_pull_request_changes_between_branches(self, repo):
        _git(repo, "checkout", "-q", "-b", "feature")
        (repo / "feature.py").write_text("f = 1\n")
        _git(repo, "add", ".")
        _git(repo, "commit", "-q", "-m", "Feature")

        changes = LocalGitSource().get_pull_request_changes(str(repo), "main", "feature")

        assert [(c.path, c.kind) for c in changes] == [("feature.py", ChangeKind.ADDED)]
        assert changes[0].new_content == "f = 1\n"

    def test_commit_info(self, repo):
        (repo / "app.py").write_text("def main():\n    return 2\n\n")
        _git(repo, "commit", "-q", "-am", "Tweak main\n\nLonger body.")

        info = LocalGitSource().get_commit_info(str(repo), "HEAD")

        assert info.hash == _head(repo)
        assert info.author == "Test User"
        assert info.email == "test@example.com"
        assert info.date
        assert info.message == "Tweak main\n\nLonger body."
        assert info.modified_files == ("app.py",)
        assert (info.lines_added, info.lines_deleted) == (2, 1)

    def test_root_commit_info_counts_all_lines(self, repo):
        info = LocalGitSource().get_commit_info(str(repo), "HEAD")
        assert set(info.modified_files) == {"app.py", "old.py", "remove.py"}
        assert info.lines_added == 6

    def test_file_content(self, repo):
        source = LocalGitSource()
        assert source.get_file_content(str(repo), "app.py") == "def main():\n    return 1\n"
        assert source.get_file_content(str(repo), "missing.py") == ""

    def test_modified_files(self, repo):
        (repo / "app.py").write_text("changed\n")
        (repo / "untracked.py").write_text("new\n")
        assert sorted(LocalGitSource().get_modified_files(str(repo))) == ["app.py", "untracked.py"]

    def test_is_repository(self, repo):
        source = LocalGitSource()
        assert source.is_repository(str(repo)) is True
        assert source.is_repository(str(repo / "does-not-exist")) is False

    def test_unknown_revision_raises(self, repo):
        with pytest.raises(RevisionNotFoundError):
            LocalGitSource().get_changes(str(repo), "no-such-branch")

    def test_missing_repository_raises(self, tmp_path):
        with pytest.raises(RepositoryNotFoundError):
            LocalGitSource().get_changes(str(tmp_path / "nowhere"), "HEAD")
