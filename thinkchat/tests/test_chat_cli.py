"""Tests for the non-interactive chat CLI."""

import asyncio
import json

from thinkchat.chat_cli import build_parser, run


def test_parser_defaults():
    args = build_parser().parse_args(["Hello there"])
    assert args.prompt == "Hello there"
    assert args.chat_id is None
    assert args.json_output is False
    assert args.list_chats is False


def test_parser_flags():
    args = build_parser().parse_args(["-", "--chat-id", "c1", "--title", "T", "--json", "--env-file", "x.env"])
    assert args.prompt == "-"
    assert args.chat_id == "c1"
    assert args.title == "T"
    assert args.json_output is True
    assert args.env_file == "x.env"


def test_run_prints_fallback_turn_as_json(monkeypatch, capsys):
    monkeypatch.delenv("RESPONDER_URL", raising=False)
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    args = build_parser().parse_args(["Hello", "--json", "--title", "CLI chat"])

    code = asyncio.run(run(args))

    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["resolution"] == "fallback"
    assert out["user_message"]["content"] == "Hello"


def test_run_unknown_chat_id(monkeypatch, capsys):
    monkeypatch.delenv("RESPONDER_URL", raising=False)
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    args = build_parser().parse_args(["Hello", "--chat-id", "missing"])

    assert asyncio.run(run(args)) == 2
    assert "chat not found" in capsys.readouterr().err
