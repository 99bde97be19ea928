"""Tests for role normalization and conversation building."""

from types import SimpleNamespace

import pytest

from handbook_chat.rag.prompt import (
    CONTEXT_LABEL,
    DEFAULT_SYSTEM_INSTRUCTION,
    build_conversation,
    normalize_role,
)


def turn(role, content):
    return SimpleNamespace(role=role, content=content)


@pytest.mark.parametrize(
    "role, expected",
    [
        ("assistant", "model"),
        ("model", "model"),
        ("user", "user"),
        ("system", "user"),
        ("bot", "user"),
        ("", "user"),
        (None, "user"),
        ("Assistant", "user"),
    ],
)
def test_normalize_role_is_total(role, expected):
    assert normalize_role(role) == expected


def test_no_history_no_context():
    conversation = build_conversation([], "What is destructive leadership?")
    assert [(e.role, e.text) for e in conversation] == [("user", "What is destructive leadership?")]


def test_context_block_comes_first():
    conversation = build_conversation([], "Q", context="Passage.")
    assert conversation[0].role == "user"
    assert conversation[0].text == f"{CONTEXT_LABEL}\nPassage."
    assert conversation[-1].text == "Q"


def test_history_normalized_and_empty_dropped():
    history = [
        turn("user", "one"),
        turn("assistant", "two"),
        turn("assistant", ""),
        turn("system", "three"),
        turn("user", None),
    ]
    conversation = build_conversation(history, "now")
    assert [(e.role, e.text) for e in conversation] == [
        ("user", "one"),
        ("model", "two"),
        ("user", "three"),
        ("user", "now"),
    ]


@pytest.mark.parametrize("n", [0, 1, 7])
def test_current_message_always_last(n):
    history = [turn("user" if i % 2 else "assistant", f"turn {i}") for i in range(n)]
    conversation = build_conversation(history, "current", context="ctx")
    assert conversation[-1].role == "user"
    assert conversation[-1].text == "current"
    assert len(conversation) == n + 2


def test_roles_are_only_user_or_model():
    history = [turn(r, "x") for r in ("assistant", "user", "tool", "system", "model")]
    conversation = build_conversation(history, "q", context="c")
    assert {e.role for e in conversation} <= {"user", "model"}


def test_instruction_is_not_a_conversation_entry():
    conversation = build_conversation([], "q", context="c")
    assert all(DEFAULT_SYSTEM_INSTRUCTION not in e.text for e in conversation)


def test_default_instruction_rules():
    assert "acknowledgment phrases" in DEFAULT_SYSTEM_INSTRUCTION
    assert "Research Handbook on Destructive Leadership" in DEFAULT_SYSTEM_INSTRUCTION
    assert "bullet points" in DEFAULT_SYSTEM_INSTRUCTION
