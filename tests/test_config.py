"""Unit tests for config.py: command line parsing and start path resolution."""

from pathlib import Path, PurePosixPath

import pytest

from seafload.config import Config
from seafload.share import parse
from seafload.transfer import ConflictPolicy
from seafload.traversal import TraversalMode

URL = "https://cloud.example/d/abc/"


class TestParseArgs:
    def test_list_defaults(self) -> None:
        config = Config.parse_args(["list", URL])
        assert config.command == Config.LIST
        assert config.url == URL
        assert config.path is None
        assert config.json is False

    def test_download_defaults(self) -> None:
        config = Config.parse_args(["download", URL])
        assert config.command == Config.DOWNLOAD
        assert config.output == Path("./")
        assert config.conflict == ConflictPolicy.SKIP
        assert config.recursive == TraversalMode.NONE
        assert config.include == [] and config.exclude == []
        assert not config.archive and not config.dry_run

    def test_download_options(self) -> None:
        config = Config.parse_args([
            "-v", "download", URL, "-o", "out", "-a", "-c", "continue",
            "--include", "/a/*", "--exclude", "/a/b", "--exclude", "/c/**", "--dry-run", "-p", "sub",
        ])
        assert config.verbose
        assert config.output == Path("out")
        assert config.archive
        assert config.conflict == ConflictPolicy.CONTINUE
        assert config.include == ["/a/*"]
        assert config.exclude == ["/a/b", "/c/**"]
        assert config.dry_run
        assert config.path == "sub"

    def test_recursive_without_value_is_dfs(self) -> None:
        assert Config.parse_args(["download", URL, "-r"]).recursive == TraversalMode.DFS
        assert Config.parse_args(["download", URL, "--recursive=bfs"]).recursive == TraversalMode.BFS

    def test_unknown_conflict_policy(self) -> None:
        with pytest.raises(SystemExit):
            Config.parse_args(["download", URL, "-c", "merge"])

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            Config.parse_args([])


class TestStartPath:
    def test_link_path_without_option(self) -> None:
        link = parse(URL + "?p=/a/b")
        assert Config(Config.LIST, URL).start_path(link) == PurePosixPath("/a/b")

    def test_share_root(self) -> None:
        assert Config(Config.LIST, URL).start_path(parse(URL)) is None

    def test_relative_option_joins_link_path(self) -> None:
        link = parse(URL + "?p=/a")
        assert Config(Config.LIST, URL, path="b/c").start_path(link) == PurePosixPath("/a/b/c")

    def test_absolute_option_replaces_link_path(self) -> None:
        link = parse(URL + "?p=/a")
        assert Config(Config.LIST, URL, path="/z").start_path(link) == PurePosixPath("/z")

    def test_relative_option_on_share_root(self) -> None:
        assert Config(Config.LIST, URL, path="b").start_path(parse(URL)) == PurePosixPath("/b")
