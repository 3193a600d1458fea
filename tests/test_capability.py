import asyncio
from types import SimpleNamespace

import pytest

from src.api.errors import CapabilityError
from src.api.services.capability import (
    OpenAITranscriber,
    OpenAITranslator,
    SpeechCapability,
    build_capability,
)
from src.api.settings import APISettings


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeTranscriptions:
    def __init__(self, text):
        self.text = text
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        return self.text


def _openai(completion="Hello", transcript="שלום"):
    return SimpleNamespace(
        chat=SimpleNamespace(completions=FakeCompletions(completion)),
        audio=SimpleNamespace(transcriptions=FakeTranscriptions(transcript)),
    )


def test_translator_sends_glossary_and_context():
    client = _openai()
    translator = OpenAITranslator(client, "gpt-4o-mini", source_language="he", target_language="en")
    result = asyncio.run(translator.translate("שלום", {"שלום": "Hello"}, "הקשר"))
    assert result == "Hello"
    kwargs = client.chat.completions.kwargs
    system, user = kwargs["messages"]
    assert "Hebrew" in system["content"] and "English" in system["content"]
    assert '"שלום" -> "Hello"' in system["content"]
    assert 'Previous context: "הקשר"' in user["content"]
    assert user["content"].endswith("שלום")
    assert kwargs["temperature"] == 0.4


def test_translator_without_glossary_or_context():
    translator = OpenAITranslator(_openai(), "m", source_language="he", target_language="en")
    assert "Glossary" not in translator.system_prompt({})
    assert "Previous context" not in translator.user_prompt("טקסט", None)


def test_transcriber_requests_fixed_language():
    client = _openai()
    transcriber = OpenAITranscriber(client, "whisper-1")
    assert asyncio.run(transcriber.transcribe(b"abc", "chunk_0.flac", "he")) == "שלום"
    kwargs = client.audio.transcriptions.kwargs
    assert kwargs["language"] == "he"
    assert kwargs["file"] == ("chunk_0.flac", b"abc", "audio/flac")


def test_provider_failures_become_capability_errors():
    class Exploding:
        name = "exploding"

        async def transcribe(self, audio, filename, language):
            raise RuntimeError("model crashed")

        async def translate(self, text, glossary, prior_context):
            raise ValueError("bad response")

    capability = SpeechCapability(Exploding(), Exploding())
    with pytest.raises(CapabilityError, match="Transcription failed"):
        asyncio.run(capability.transcribe(b"a", "a.flac", "he"))
    with pytest.raises(CapabilityError, match="Translation failed"):
        asyncio.run(capability.translate("t", {}, None))


def test_build_capability_requires_api_key():
    with pytest.raises(CapabilityError):
        build_capability(APISettings(openai_api_key=None))


def test_build_capability_selects_backend():
    capability = build_capability(APISettings(openai_api_key="sk-test", transcribe_backend="openai"))
    assert capability.name == "openai:whisper-1+openai:gpt-4o-mini"
    local = build_capability(APISettings(openai_api_key="sk-test", transcribe_backend="local"))
    assert local.transcriber.name == "faster-whisper"
    with pytest.raises(ValueError):
        build_capability(APISettings(openai_api_key="sk-test", transcribe_backend="carrier-pigeon"))
