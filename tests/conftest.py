"""Shared test fixtures for chatexport."""

from __future__ import annotations

import copy
import json

import pytest

from chatexport.config import reset_settings
from chatexport.decode import decode

SAMPLE_STORE = {
    "chat-next-web-store": {
        "sessions": [
            {
                "id": "s1",
                "topic": "Greetings",
                "memoryPrompt": "The user greeted the assistant.",
                "stat": {"tokenCount": 12, "wordCount": 4, "charCount": 17},
                "lastUpdate": 1700000005000,
                "lastSummarizeIndex": 0,
                "mask": {
                    "id": 1700000000000,
                    "avatar": "1f603",
                    "name": "Helper",
                    "lang": "en",
                    "createdAt": 1700000000000,
                    "builtin": False,
                    "context": [],
                    "modelConfig": {
                        "model": "gpt-4",
                        "temperature": 0.5,
                        "max_tokens": 2000,
                        "sendMemory": True,
                    },
                },
                "messages": [
                    {"id": "m1", "date": "11/14/2023, 10:00:00 PM", "role": "user", "content": "hello"},
                    {"id": "m2", "date": "11/14/2023, 10:00:05 PM", "role": "assistant", "content": "hi there"},
                ],
            },
            {
                "id": "s2",
                "topic": "Empty chat",
                "memoryPrompt": "",
                "stat": {"tokenCount": 0, "wordCount": 0, "charCount": 0},
                "lastUpdate": 1700000010000,
                "lastSummarizeIndex": 0,
                "mask": {
                    "id": "mask-abc",
                    "avatar": "gpt-bot",
                    "name": "New Chat",
                    "lang": "en",
                    "createdAt": 1700000010000,
                },
                "messages": [],
            },
            {
                "id": "s3",
                "topic": "Quotes, commas",
                "memoryPrompt": "Tricky characters, \"quoted\".",
                "stat": {"tokenCount": 30, "wordCount": 9, "charCount": 60},
                "lastUpdate": 1700000020000,
                "lastSummarizeIndex": 2,
                "mask": {
                    "id": 7,
                    "avatar": "1f916",
                    "name": "Résumé bot",
                    "lang": "fr",
                    "createdAt": 1700000020000,
                    "modelConfig": {
                        "model": "gpt-3.5-turbo",
                        "systemprompt": {"default": "custom prompt"},
                    },
                },
                "messages": [
                    {"id": "m3", "date": "11/15/2023", "role": "user", "content": "a, b and \"c\""},
                    {"id": "m4", "date": "11/15/2023", "role": "assistant", "content": "line one\nline two"},
                    {"id": "m5", "date": "11/15/2023", "role": "user", "content": "merci à vous"},
                ],
            },
        ],
        "currentSessionIndex": 0,
        "lastUpdateTime": 1700000020000,
    },
    "app-config": {"theme": "dark"},
}


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Each test sees default settings, untouched by the developer's environment."""
    for name in ("CHATEXPORT_REPAIRED_PREFIX", "CHATEXPORT_LOG_DIR", "CHATEXPORT_ENCODING"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def store_dict():
    """A fresh copy of the sample export tree."""
    return copy.deepcopy(SAMPLE_STORE)


@pytest.fixture
def export_file(tmp_path, store_dict):
    """The sample export written to disk."""
    path = tmp_path / "chat-sessions.json"
    path.write_text(json.dumps(store_dict, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def sessions(store_dict):
    """The sample export decoded into Session models."""
    return decode(json.dumps(store_dict)).sessions


@pytest.fixture
def two_message_sessions():
    """One session with a user and an assistant message."""
    data = {
        "chat-next-web-store": {
            "sessions": [
                {
                    "id": "only",
                    "topic": "Hi",
                    "memoryPrompt": "short chat",
                    "messages": [
                        {"id": "a", "date": "d1", "role": "user", "content": "hello"},
                        {"id": "b", "date": "d2", "role": "assistant", "content": "hi there"},
                    ],
                }
            ]
        }
    }
    return decode(json.dumps(data)).sessions


@pytest.fixture
def lone_surrogate_json(store_dict):
    """The sample export with an unpaired surrogate escape in a message, as text."""
    text = json.dumps(store_dict)
    assert '"hello"' in text
    # a truncated emoji: the high half of U+1F600 without its low half
    return text.replace('"hello"', '"hello \\ud83d"')
