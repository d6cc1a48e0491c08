"""Tests for ambient chat selection and the LLM-backed dialogue provider."""

import asyncio
import random

import pytest

from jarvisbrain.config import Config
from jarvisbrain.dialogue import AMBIENT_PROMPT, DEFAULT_LINES, LLMDialogueProvider, choose_ambient_line


class Provider:
    def __init__(self, behavior):
        self.behavior = behavior

    async def chat(self, prompt, context=""):
        return await self.behavior(prompt, context)


@pytest.mark.asyncio
async def test_no_provider_uses_canned_line():
    assert await choose_ambient_line(None, "", random.Random(0)) in DEFAULT_LINES


@pytest.mark.asyncio
async def test_provider_line_is_stripped():
    async def behavior(prompt, context):
        assert prompt == AMBIENT_PROMPT
        assert context == "Nearest player Steve"
        return "  Found some coal!  "

    line = await choose_ambient_line(Provider(behavior), "Nearest player Steve", random.Random(0))

    assert line == "Found some coal!"


@pytest.mark.asyncio
@pytest.mark.parametrize("outcome", ["", "   ", None, RuntimeError("down"), "hang"])
async def test_every_failure_falls_back(outcome):
    async def behavior(prompt, context):
        if outcome == "hang":
            await asyncio.sleep(1)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    line = await choose_ambient_line(Provider(behavior), "", random.Random(0), timeout=0.01)

    assert line in DEFAULT_LINES


def patch_llm(monkeypatch, replies, prompts):
    def fake_decorator(*, provider, model):
        def wrapper(fn):
            async def inner(prompt: str):
                prompts.append(prompt)
                return replies.pop(0)

            return inner

        return wrapper

    monkeypatch.setattr("jarvisbrain.llm_utils.llm.call", fake_decorator)


@pytest.mark.asyncio
async def test_llm_provider_keeps_bounded_history(monkeypatch):
    prompts = []
    patch_llm(monkeypatch, ["first", "second"], prompts)
    provider = LLMDialogueProvider(llm_provider="openai", llm_model="gpt-5-nano", system_prompt="SYS", max_history=2)

    assert await provider.chat("hello") == "first"
    assert await provider.chat("again", context="near spawn") == "second"

    assert prompts[0] == "SYS\n\nUSER: hello"
    assert prompts[1] == "SYS\n\nUSER: hello\n\nASSISTANT: first\n\nUSER: again\n\nContext:\nnear spawn"
    assert [turn.content for turn in provider.history] == ["again", "second"]


@pytest.mark.asyncio
async def test_llm_provider_without_history(monkeypatch):
    prompts = []
    patch_llm(monkeypatch, ["one", "two"], prompts)
    provider = LLMDialogueProvider(llm_provider="openai", llm_model="m", system_prompt="", max_history=0)

    await provider.chat("a")
    await provider.chat("b")

    assert prompts == ["USER: a", "USER: b"]
    assert len(provider.history) == 0


def test_from_config_respects_ai_flag(monkeypatch):
    monkeypatch.setattr(Config, "AI_ENABLED", False)
    assert LLMDialogueProvider.from_config() is None

    monkeypatch.setattr(Config, "AI_ENABLED", True)
    monkeypatch.setattr(Config, "LLM_MODEL", "gpt-5-nano")
    provider = LLMDialogueProvider.from_config()
    assert provider.llm_model == "gpt-5-nano"
