"""Tests for the OpenAI food recognition adapter."""

import asyncio
import json

import pytest

from nutrition_analytics.adapters.openai_food_client import OpenAIFoodClient


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, output_text: str = json.dumps({"items": []})) -> None:
        self.responses = _FakeResponses(output_text)


def test_image_request_includes_image_and_reasoning() -> None:
    fake = _FakeOpenAI()
    client = OpenAIFoodClient(client=fake, model="gpt-5.2", reasoning_effort="high")

    result = asyncio.run(
        client.recognize(
            prompt="Identify foods",
            schema={"type": "object"},
            image_data_url="data:image/jpeg;base64,ZmFrZQ==",
        )
    )

    assert result == {"items": []}
    payload = fake.responses.last_payload
    assert payload is not None
    content = payload["input"][0]["content"]
    assert [part["type"] for part in content] == ["input_text", "input_image"]
    assert payload["reasoning"] == {"effort": "high"}
    assert payload["text"]["format"]["strict"] is True


def test_text_request_has_no_image() -> None:
    fake = _FakeOpenAI()
    client = OpenAIFoodClient(client=fake, model="gpt-5.2")

    asyncio.run(client.recognize(prompt="Extract foods", schema={"type": "object"}))

    payload = fake.responses.last_payload
    assert payload is not None
    assert [part["type"] for part in payload["input"][0]["content"]] == ["input_text"]
    assert "reasoning" not in payload


def test_empty_output_raises() -> None:
    client = OpenAIFoodClient(client=_FakeOpenAI(output_text=""), model="gpt-5.2")

    with pytest.raises(RuntimeError):
        asyncio.run(client.recognize(prompt="x", schema={"type": "object"}))
