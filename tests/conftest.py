import json

import pytest

from bankai.database.repository import PaperRepository
from bankai.database.store import MemoryStore
from bankai.errors import ProviderError
from bankai.services.llm_client import LLMClient


class FakeLLMClient(LLMClient):
    """Scripted client: each call pops the next reply (str) or raises it (Exception)."""

    name = "fake"

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def _next(self):
        if not self.replies:
            raise AssertionError("unexpected LLM call")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def generate(self, prompt, web_search=False, json_output=False):
        self.calls.append({"kind": "generate", "prompt": prompt, "web_search": web_search, "json_output": json_output})
        return self._next()

    async def chat(self, system_instruction, history, message):
        self.calls.append({"kind": "chat", "system": system_instruction, "history": list(history), "message": message})
        return self._next()


class RecordingSleep:
    def __init__(self):
        self.waits = []

    async def __call__(self, seconds):
        self.waits.append(seconds)


def fenced(records):
    return "Here are the papers:\n```json\n" + json.dumps(records) + "\n```\n"


def rate_limited():
    return ProviderError("Gemini API Error (429): RESOURCE_EXHAUSTED", status_code=429)


@pytest.fixture()
def repo():
    return PaperRepository(MemoryStore())


@pytest.fixture()
def sleep():
    return RecordingSleep()
