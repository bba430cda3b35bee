"""Pytest configuration: adds src/ to sys.path and provides HTTP fakes."""

import os
import sys

import pytest

# Add src/ to Python path so tests can import from seafload
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


class FakeResponse:
    """A minimal stand-in for requests.Response."""

    def __init__(self, content=b"", status_code=200, json_data=None, text=None, url="https://cloud.example/"):
        self.content = content
        self.status_code = status_code
        self._json = json_data
        self.text = text if text is not None else content.decode("utf-8", "replace")
        self.url = url
        self.reason = "OK" if status_code < 400 else "Error"
        self.closed = False

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("no JSON")
        return self._json

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
        return False


class FakeSession:
    """Serves responses from a callable or mapping and records requests."""

    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.handler(url, **kwargs)


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_session():
    return FakeSession
