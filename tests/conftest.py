from types import SimpleNamespace

import pytest

from store import InMemoryStore


class FakeCompletions:
    def __init__(self, reply=None, error=None, no_choices=False):
        self.reply = reply
        self.error = error
        self.no_choices = no_choices
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.no_choices:
            return SimpleNamespace(choices=[])
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeClient:
    """Stands in for the OpenAI client: ``client.chat.completions.create``."""

    def __init__(self, reply=None, error=None, no_choices=False):
        self.completions = FakeCompletions(reply, error, no_choices)
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self):
        return self.completions.calls

    @property
    def last_prompt(self):
        return self.calls[-1]["messages"][-1]["content"]


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture
def store():
    return InMemoryStore()


class MemoryFileStorage:
    def __init__(self):
        self.files = {}

    def upload(self, path, data, content_type=None):
        self.files[path] = data

    def download(self, path):
        return self.files[path]


@pytest.fixture
def file_storage():
    return MemoryFileStorage()
