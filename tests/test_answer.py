"""Tests for the generation client."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from openai import APIConnectionError

from handbook_chat.errors import GenerationFailed
from handbook_chat.rag.answer import GenerationConfig, Generator, to_messages
from handbook_chat.rag.prompt import ConversationEntry


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def make_client(result=None, error=None):
    client = Mock()
    client.chat.completions.create = AsyncMock(return_value=result, side_effect=error)
    return client


CONVERSATION = [
    ConversationEntry("user", "Relevant retrieved context:\nPassage."),
    ConversationEntry("model", "Earlier answer"),
    ConversationEntry("user", "Question?"),
]


def test_to_messages_system_first_and_roles_mapped():
    assert to_messages(CONVERSATION, "Be precise.") == [
        {"role": "system", "content": "Be precise."},
        {"role": "user", "content": "Relevant retrieved context:\nPassage."},
        {"role": "assistant", "content": "Earlier answer"},
        {"role": "user", "content": "Question?"},
    ]


def test_generate_sends_config():
    client = make_client(completion("The answer."))
    generator = Generator(client)

    text = asyncio.run(generator.generate_async(CONVERSATION, "Be precise.", GenerationConfig(model="gpt-4o")))

    assert text == "The answer."
    call_args = client.chat.completions.create.call_args[1]
    assert call_args["model"] == "gpt-4o"
    assert call_args["temperature"] == 0.9
    assert call_args["messages"][0] == {"role": "system", "content": "Be precise."}
    assert call_args["messages"][-1] == {"role": "user", "content": "Question?"}
    assert "extra_body" not in call_args


def test_generate_forwards_top_k_to_compatible_servers():
    client = make_client(completion("ok"))
    asyncio.run(Generator(client, send_top_k=True).generate_async(CONVERSATION, "", GenerationConfig()))
    call_args = client.chat.completions.create.call_args[1]
    assert call_args["extra_body"] == {"top_k": 40}
    assert call_args["messages"][0]["role"] == "user"


def test_generate_empty_content_returns_empty_string():
    client = make_client(completion(None))
    assert asyncio.run(Generator(client).generate_async(CONVERSATION, "x", GenerationConfig())) == ""


def test_generate_api_error_raises_generation_failed():
    error = APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    generator = Generator(make_client(error=error))
    with pytest.raises(GenerationFailed):
        asyncio.run(generator.generate_async(CONVERSATION, "x", GenerationConfig()))
