import pytest

from clawdroid import constants
from clawdroid.agent.models import ChatMessage, ImagePart, TextPart
from clawdroid.agent.parsing import parse_json_response
from clawdroid.agent.providers import OpenAIProvider
from tests.fakes import FakeOpenAIClient, chunk, completion


def screen_messages():
    return [
        ChatMessage(role="system", content="You drive the device."),
        ChatMessage(role="user", content="GOAL: open settings"),
        ChatMessage(role="assistant", content='{"action": "home", "reason": "start"}'),
        ChatMessage(
            role="user",
            content=[
                TextPart(text="SCREEN_CONTEXT: []"),
                ImagePart(base64="iVBORw0KGgo=", mime_type="image/png"),
            ],
        ),
    ]


def test_messages_keep_system_inline_and_convert_images():
    provider = OpenAIProvider("gpt-4o", client=FakeOpenAIClient())

    converted = provider.to_openai_messages(screen_messages())

    assert converted[0] == {"role": "system", "content": "You drive the device."}
    assert converted[1] == {"role": "user", "content": "GOAL: open settings"}
    assert converted[3]["content"] == [
        {"type": "text", "text": "SCREEN_CONTEXT: []"},
        {
            "type": "image_url",
            "image_url": {"url": "data:image/png;base64,iVBORw0KGgo=", "detail": "low"},
        },
    ]


def test_images_become_placeholder_without_vision():
    provider = OpenAIProvider("llama", supports_images=False, client=FakeOpenAIClient())

    converted = provider.to_openai_messages(screen_messages())

    assert converted[3]["content"][1] == {"type": "text", "text": constants.IMAGE_PLACEHOLDER}


@pytest.mark.asyncio
async def test_get_decision_uses_json_mode_and_parses():
    client = FakeOpenAIClient(
        response=completion('{"action": "tap", "coordinates": [200, 230], "reason": "Submit"}')
    )
    provider = OpenAIProvider("gpt-4o", client=client)

    decision = await provider.get_decision(screen_messages())

    assert decision.action == "tap"
    assert decision.coordinates == [200, 230]
    call = client.completions.calls[0]
    assert call["model"] == "gpt-4o"
    assert call["response_format"] == {"type": "json_object"}
    assert len(call["messages"]) == 4


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [None, "", "sorry, I cannot help"])
async def test_get_decision_never_fails_on_bad_text(content):
    provider = OpenAIProvider("gpt-4o", client=FakeOpenAIClient(response=completion(content)))

    decision = await provider.get_decision(screen_messages())

    assert decision.action == "wait"
    assert decision.reason


@pytest.mark.asyncio
async def test_backend_errors_propagate():
    provider = OpenAIProvider("gpt-4o", client=FakeOpenAIClient(exc=ConnectionError("down")))

    with pytest.raises(ConnectionError, match="down"):
        await provider.get_decision(screen_messages())


@pytest.mark.asyncio
async def test_stream_yields_text_fragments():
    chunks = [chunk('{"action": '), chunk(None), chunk('"back", '), chunk(""), chunk('"reason": "x"}')]
    client = FakeOpenAIClient(stream_chunks=chunks)
    provider = OpenAIProvider("gpt-4o", client=client)

    fragments = [f async for f in provider.get_decision_stream(screen_messages())]

    assert fragments == ['{"action": ', '"back", ', '"reason": "x"}']
    assert parse_json_response("".join(fragments)).action == "back"
    assert client.completions.calls[0]["stream"] is True


def test_named_constructors():
    groq = OpenAIProvider.for_groq("test-key")
    ollama = OpenAIProvider.for_ollama()
    openai = OpenAIProvider.for_openai("test-key")

    assert groq.model == constants.DEFAULT_GROQ_MODEL
    assert groq.capabilities.supports_images is False
    assert str(groq.client.base_url).startswith(constants.GROQ_API_BASE_URL)
    assert ollama.capabilities.supports_images is True
    assert str(ollama.client.base_url).startswith(constants.OLLAMA_API_BASE_URL)
    assert openai.model == constants.DEFAULT_OPENAI_MODEL
    assert openai.capabilities.supports_streaming is True
