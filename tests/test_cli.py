"""Tests for the chat-relay CLI."""

import pytest

from cli.main import build_parser, main
from configs.settings import Settings


class TestCLI:
    """Argument parsing and error reporting."""

    def test_chat_arguments(self) -> None:
        args = build_parser().parse_args(["chat", "Hello", "--thread-id", "thread_1"])

        assert args.command == "chat"
        assert args.message == "Hello"
        assert args.thread_id == "thread_1"

    def test_serve_defaults(self) -> None:
        args = build_parser().parse_args(["serve"])

        assert (args.host, args.port, args.reload) == ("127.0.0.1", 8000, False)

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_session_without_configuration(self, capsys: pytest.CaptureFixture[str]) -> None:
        cfg = Settings(openai_api_key=None, workflow_id=None)

        assert main(["session"], cfg=cfg) == 1
        assert "Missing configuration: OPENAI_API_KEY, WORKFLOW_ID" in capsys.readouterr().err

    def test_chat_without_assistant(self, capsys: pytest.CaptureFixture[str]) -> None:
        cfg = Settings(openai_api_key="sk-test", assistant_id=None)

        assert main(["chat", "Hello"], cfg=cfg) == 1
        assert "ASSISTANT_ID" in capsys.readouterr().err
