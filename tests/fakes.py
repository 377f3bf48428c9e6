"""Hand-written stand-ins for SDK clients used by provider tests."""

import io
import json
from types import SimpleNamespace


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeStream:
    def __init__(self, chunks):
        self._chunks = list(chunks)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._chunks:
            raise StopAsyncIteration
        return self._chunks.pop(0)


class FakeCompletions:
    def __init__(self, response=None, stream_chunks=None, exc=None):
        self.response = response
        self.stream_chunks = stream_chunks or []
        self.exc = exc
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        if kwargs.get("stream"):
            return FakeStream(self.stream_chunks)
        return self.response


class FakeOpenAIClient:
    def __init__(self, response=None, stream_chunks=None, exc=None):
        self.completions = FakeCompletions(response, stream_chunks, exc)
        self.chat = SimpleNamespace(completions=self.completions)


class FakeBedrockClient:
    def __init__(self, body=None, stream_events=None, exc=None):
        self.body = body
        self.stream_events = stream_events or []
        self.exc = exc
        self.calls = []
        self.stream_calls = []

    def invoke_model(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        return {"body": io.BytesIO(json.dumps(self.body).encode("utf-8"))}

    def invoke_model_with_response_stream(self, **kwargs):
        self.stream_calls.append(kwargs)
        return {"body": iter(self.stream_events)}


def stream_event(payload):
    return {"chunk": {"bytes": json.dumps(payload).encode("utf-8")}}
