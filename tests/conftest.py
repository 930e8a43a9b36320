import json

import pytest

from lingoflash.config import ExportPrefs, LanguagePrefs, OpenAIPrefs, Settings
from lingoflash.models import Card


@pytest.fixture
def cards():
    return [
        Card(id="A", source="苹果", target="Apple"),
        Card(id="B", source="香蕉", target="Banana"),
        Card(id="C", source="樱桃", target="Cherry"),
        Card(id="D", source="葡萄", target="Grape"),
    ]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        output_dir=tmp_path / "out",
        results_file=tmp_path / "out" / "results.json",
        log_level="INFO",
        language=LanguagePrefs(native_language="Chinese", target_language="English"),
        openai=OpenAIPrefs(temperature=0.2),
        export=ExportPrefs(anki_deck=True, bookmarks_only_markdown=False),
        openai_api_key="test-key",
        openai_model="gpt-test",
        openai_base_url="",
    )


class _Content:
    def __init__(self, text):
        self.text = text


class _Output:
    def __init__(self, text):
        self.content = [_Content(text)]


class _Response:
    def __init__(self, text):
        self.output = [_Output(text)]


class FakeResponses:
    def __init__(self, payload, errors=None):
        self.payload = payload
        self.errors = list(errors or [])
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.errors:
            raise self.errors.pop(0)
        text = self.payload if isinstance(self.payload, str) else json.dumps(self.payload, ensure_ascii=False)
        return _Response(text)


class FakeOpenAI:
    def __init__(self, payload, errors=None):
        self.responses = FakeResponses(payload, errors)


@pytest.fixture
def fake_openai():
    return FakeOpenAI
