"""Tests for change selection: block-lists, exclude patterns and content resolution."""

import pytest

from revlens_core.config import build_skip_policy
from revlens_core.models import ChangeKind, ChangeRecord
from revlens_core.selector import (
    TRUNCATION_MARKER,
    SkipPolicy,
    is_excluded,
    select_changes,
    select_paths,
    truncate,
    walk_directory,
)
from revlens_core.sources.base import ChangeSourceError


def make_change(path, kind=ChangeKind.MODIFIED, old="old", new="new"):
    return ChangeRecord(path=path, kind=kind, old_content=old, new_content=new)


class TestSkipPolicy:
    @pytest.mark.parametrize("path", ["a.png", "bin/x.dll", "docs/manual.PDF", "assets/icon.Ico", "dist.7z"])
    def test_blocklisted_extension_skipped(self, path):
        assert SkipPolicy().should_skip(path) is True

    def test_source_file_included(self):
        assert SkipPolicy().should_skip("src/a.cs") is False

    @pytest.mark.parametrize(
        "path",
        ["bin/Debug/app.cs", "src/obj/gen.cs", "web/node_modules/lib/index.js", ".git/config", "build/out.py"],
    )
    def test_blocklisted_directory_segment_skipped(self, path):
        assert SkipPolicy().should_skip(path) is True

    def test_windows_separators_split_segments(self):
        assert SkipPolicy().should_skip("src\\bin\\app.cs") is True

    def test_directory_name_must_match_whole_segment(self):
        assert SkipPolicy().should_skip("binary/app.cs") is False
        assert SkipPolicy().should_skip("src/builder/app.cs") is False

    def test_file_named_like_directory_not_skipped(self):
        # "build" as a file name is not a build directory.
        assert SkipPolicy().should_skip("scripts/build") is False

    def test_injected_policy_replaces_defaults(self):
        policy = SkipPolicy(skip_extensions=frozenset({".md"}), skip_directories=frozenset({"vendor"}))
        assert policy.should_skip("README.md") is True
        assert policy.should_skip("vendor/lib.go") is True
        assert policy.should_skip("logo.png") is False

    def test_policy_built_from_config_normalises_extensions(self):
        policy = build_skip_policy({"skip_extensions": ["MD", ".Lock"], "skip_directories": ["vendor"]})
        assert policy.should_skip("notes.md") is True
        assert policy.should_skip("poetry.lock") is True
        assert policy.should_skip("vendor/x.py") is True


class TestIsExcluded:
    def test_glob_basename_match(self):
        assert is_excluded("path/to/yarn.lock", ["*.lock"]) is True

    def test_glob_full_path_match(self):
        assert is_excluded("src/generated/schema.py", ["src/generated/*.py"]) is True

    def test_directory_prefix_nested(self):
        assert is_excluded("app/migrations/0001_initial.py", ["migrations"]) is True

    def test_no_false_positive_on_similar_name(self):
        assert is_excluded("test_helpers.py", ["tests/"]) is False

    def test_not_excluded_when_no_patterns(self):
        assert is_excluded("src/main.py", []) is False


class TestSelectChanges:
    def test_modified_file_uses_new_content(self):
        targets = select_changes([make_change("src/a.cs")])
        assert [(t.path, t.content) for t in targets] == [("src/a.cs", "new")]

    def test_added_file_uses_new_content(self):
        targets = select_changes([make_change("src/a.cs", ChangeKind.ADDED, old="")])
        assert targets[0].content == "new"

    def test_deleted_file_uses_old_content(self):
        targets = select_changes([make_change("src/a.cs", ChangeKind.DELETED, new="")])
        assert targets[0].content == "old"

    def test_renamed_file_uses_new_content(self):
        targets = select_changes([make_change("src/b.cs", ChangeKind.RENAMED)])
        assert targets[0].content == "new"

    def test_blocklisted_files_dropped(self):
        changes = [make_change("a.png"), make_change("bin/x.dll"), make_change("src/a.cs")]
        assert [t.path for t in select_changes(changes)] == ["src/a.cs"]

    def test_empty_content_dropped(self):
        assert select_changes([make_change("src/a.cs", new="")]) == []

    def test_exclude_patterns_applied(self):
        changes = [make_change("migrations/0001.py"), make_change("app.py")]
        assert [t.path for t in select_changes(changes, exclude=["migrations/"])] == ["app.py"]

    def test_long_content_truncated(self):
        targets = select_changes([make_change("a.py", new="x" * 50)], max_chars=10)
        assert targets[0].content == "x" * 10 + TRUNCATION_MARKER


class TestSelectPaths:
    def test_read_failure_drops_file(self):
        def read(path):
            if path == "broken.py":
                raise OSError("permission denied")
            return "content"

        targets = select_paths(["broken.py", "ok.py"], read)
        assert [t.path for t in targets] == ["ok.py"]

    def test_source_error_drops_file(self):
        def read(path):
            raise ChangeSourceError("unreachable")

        assert select_paths(["a.py"], read) == []

    def test_blocklisted_path_never_read(self):
        calls = []

        def read(path):
            calls.append(path)
            return "content"

        select_paths(["logo.png", "a.py"], read)
        assert calls == ["a.py"]

    def test_empty_content_dropped(self):
        assert select_paths(["a.py"], lambda p: "") == []


class TestTruncate:
    def test_short_content_unchanged(self):
        assert truncate("abc", 10) == "abc"

    def test_no_limit(self):
        assert truncate("abc" * 100, None) == "abc" * 100


class TestWalkDirectory:
    def test_walk_returns_relative_paths_and_skips_blocklisted(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "app.py").write_text("print('hi')\n")
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "lib.js").write_text("x")
        (tmp_path / "logo.png").write_bytes(b"\x89PNG")
        (tmp_path / "empty.py").write_text("")

        targets = walk_directory(tmp_path)

        assert [t.path for t in targets] == ["src/app.py"]
        assert targets[0].content == "print('hi')\n"

    def test_undecodable_file_dropped(self, tmp_path):
        (tmp_path / "blob.dat").write_bytes(b"\xff\xfe\x00\x81")
        (tmp_path / "ok.py").write_text("x = 1\n")
        assert [t.path for t in walk_directory(tmp_path)] == ["ok.py"]

    def test_exclude_patterns(self, tmp_path):
        (tmp_path / "migrations").mkdir()
        (tmp_path / "migrations" / "0001.py").write_text("x")
        (tmp_path / "app.py").write_text("x")
        assert [t.path for t in walk_directory(tmp_path, exclude=["migrations/"])] == ["app.py"]

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(NotADirectoryError):
            walk_directory(tmp_path / "missing")
