"""Tests for command-line parsing."""

from conch.app import build_parser, main
from conch.config import DEFAULT_SERVER, DEFAULT_USER, PAGE_SIZE


class TestParser:
    def test_viewer_defaults(self):
        args = build_parser().parse_args([])
        assert args.command is None
        assert args.stick_to_top is False
        assert args.page_size == PAGE_SIZE

    def test_stick_to_top(self):
        assert build_parser().parse_args(["-s"]).stick_to_top is True
        assert build_parser().parse_args(["--stick-to-top"]).stick_to_top is True

    def test_serve(self):
        args = build_parser().parse_args(["serve", "--port", "5000", "--seed", "20"])
        assert (args.command, args.port, args.seed) == ("serve", 5000, 20)

    def test_post(self):
        args = build_parser().parse_args(["--user", "lemur", "post", "hello", "there"])
        assert args.user == "lemur"
        assert args.content == ["hello", "there"]

    def test_post_user_after_content(self):
        args = build_parser().parse_args(["post", "hello", "--user", "lemur"])
        assert args.user == "lemur"
        assert args.content == ["hello"]

    def test_post_defaults(self):
        args = build_parser().parse_args(["post", "hello"])
        assert args.user == DEFAULT_USER
        assert args.server == DEFAULT_SERVER
        assert args.verbose is False

    def test_serve_verbose(self):
        args = build_parser().parse_args(["serve", "--verbose"])
        assert args.verbose is True

    def test_option_before_subcommand_survives(self):
        args = build_parser().parse_args(["--server", "ws://example:1", "post", "hi"])
        assert args.server == "ws://example:1"

    def test_bad_page_size(self, capsys):
        assert main(["--page-size", "0"]) == 2
        assert "page-size" in capsys.readouterr().out
