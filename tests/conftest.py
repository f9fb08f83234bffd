"""Pytest configuration and fixtures."""

import json
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest

from redline.services.analysis_client import AnalysisClient, DepthConfig
from redline.services.clause_extractor import EXTRACT_SYSTEM_PROMPT
from redline.services.complexity import CLASSIFY_SYSTEM_PROMPT
from redline.services.domain_diff import DIFF_SYSTEM_PROMPT
from redline.services.executive_summary import EXECUTIVE_SYSTEM_PROMPT
from redline.services.summarizer import SUMMARY_SYSTEM_PROMPT

HIGH_DEPTH = DepthConfig(name="high", model="gpt-4o", json_mode=True)
FAST_DEPTH = DepthConfig(name="fast", model="gpt-4o-mini", json_mode=False)

STAGE_PROMPTS = {
    CLASSIFY_SYSTEM_PROMPT: "classify",
    EXTRACT_SYSTEM_PROMPT: "extract",
    SUMMARY_SYSTEM_PROMPT: "summary",
    DIFF_SYSTEM_PROMPT: "diff",
    EXECUTIVE_SYSTEM_PROMPT: "executive",
}


def create_mock_response(content):
    """Create a mock OpenAI chat completion response."""
    if not isinstance(content, str) and content is not None:
        content = json.dumps(content)

    mock_message = Mock()
    mock_message.content = content

    mock_choice = Mock()
    mock_choice.message = mock_message

    mock_response = Mock()
    mock_response.choices = [mock_choice]

    return mock_response


def create_mock_openai(response_data=None, side_effect=None):
    """Create a mock AsyncOpenAI client."""
    mock_openai = MagicMock()
    mock_openai.chat.completions.create = AsyncMock()
    mock_openai.close = AsyncMock()

    if side_effect is not None:
        mock_openai.chat.completions.create.side_effect = side_effect
    else:
        mock_openai.chat.completions.create.return_value = create_mock_response(response_data)

    return mock_openai


def make_client(openai_client, **kwargs) -> AnalysisClient:
    """Build an AnalysisClient around a mocked OpenAI client."""
    kwargs.setdefault("high", HIGH_DEPTH)
    kwargs.setdefault("fast", FAST_DEPTH)
    return AnalysisClient(openai_client, **kwargs)


def stage_of(call_kwargs) -> str:
    """Name of the pipeline stage that issued a recorded call."""
    return STAGE_PROMPTS[call_kwargs["messages"][0]["content"]]


class ScriptedOpenAI:
    """Fake AsyncOpenAI that answers each pipeline stage with a handler.

    Handlers receive the user payload and return a dict (sent as JSON), a
    string (sent verbatim), or raise to simulate a transport failure.
    Stages without a handler fail with a RuntimeError.
    """

    def __init__(self, **handlers):
        self.handlers = handlers
        self.calls = []
        self.chat = MagicMock()
        self.chat.completions.create = AsyncMock(side_effect=self._create)
        self.close = AsyncMock()

    async def _create(self, **kwargs):
        stage = stage_of(kwargs)
        self.calls.append((stage, kwargs))
        handler = self.handlers.get(stage)
        if handler is None:
            raise RuntimeError(f"no handler for {stage}")
        result = handler(kwargs["messages"][1]["content"])
        if hasattr(result, "__await__"):
            result = await result
        return create_mock_response(result)

    def stages(self) -> list[str]:
        return [stage for stage, _ in self.calls]


@pytest.fixture
def mock_openai():
    """Mock AsyncOpenAI client returning an empty JSON object."""
    return create_mock_openai(response_data={})


@pytest.fixture
def analysis_client(mock_openai):
    """AnalysisClient wired to the mock OpenAI client."""
    return make_client(mock_openai)


@pytest.fixture(autouse=True)
def no_temporal():
    """Keep the app lifespan from dialing a real Temporal server."""
    temporal_client = MagicMock()
    temporal_client.connect = AsyncMock(side_effect=RuntimeError("Temporal disabled in tests"))
    with patch("redline.main.TemporalClient", temporal_client):
        yield
