"""
Ambient chat lines.

The brain asks a :class:`DialogueProvider` for something to say every social
tick. Providers are allowed to fail in every way (raise, hang, return an
empty string); :func:`choose_ambient_line` turns all of those into one of the
canned lines so the social cycle never stalls.
"""

from __future__ import annotations

import asyncio
import random
from collections import deque
from typing import Deque, Optional, Protocol

from .config import Config
from .llm_utils import ChatTurn, DialogueError, build_prompt, call_llm_text
from .logging_utils import log_debug, log_llm


DEFAULT_LINES = (
    "Just checking on things around here.",
    "Exploring the area, feels cozy!",
    "Let me know if you need a hand with anything.",
    "I might go mine something shiny soon.",
)

AMBIENT_PROMPT = "Say a short friendly message that sounds like a Minecraft player doing their own thing."
DIALOGUE_TIMEOUT_SECONDS = 15.0


class DialogueProvider(Protocol):
    async def chat(self, prompt: str, context: str = "") -> str:
        ...


async def choose_ambient_line(
    provider: Optional[DialogueProvider],
    context: str,
    rng: random.Random,
    timeout: float = DIALOGUE_TIMEOUT_SECONDS,
) -> str:
    """Ask ``provider`` for a line, falling back to a canned one on any failure."""
    if provider is None:
        return rng.choice(DEFAULT_LINES)
    try:
        text = await asyncio.wait_for(provider.chat(AMBIENT_PROMPT, context), timeout=timeout)
    except asyncio.TimeoutError:
        log_debug("Ambient chat timed out; using a canned line")
        return rng.choice(DEFAULT_LINES)
    except Exception as exc:
        log_debug(f"Ambient chat failed: {exc}")
        return rng.choice(DEFAULT_LINES)
    text = (text or "").strip()
    if not text:
        return rng.choice(DEFAULT_LINES)
    return text


class LLMDialogueProvider:
    """Dialogue provider backed by an LLM, with a bounded conversation history."""

    def __init__(
        self,
        llm_provider: Optional[str] = None,
        llm_model: Optional[str] = None,
        system_prompt: Optional[str] = None,
        max_history: Optional[int] = None,
    ) -> None:
        self.llm_provider = llm_provider or Config.LLM_PROVIDER
        self.llm_model = llm_model or Config.LLM_MODEL
        self.system_prompt = system_prompt if system_prompt is not None else Config.AI_SYSTEM_PROMPT
        self.max_history = max_history if max_history is not None else Config.AI_HISTORY
        self.history: Deque[ChatTurn] = deque(maxlen=max(0, self.max_history))

    @classmethod
    def from_config(cls) -> Optional["LLMDialogueProvider"]:
        """Provider from environment settings, or None when AI is disabled."""
        if not Config.AI_ENABLED:
            return None
        return cls()

    def _remember(self, role: str, content: str) -> None:
        if self.history.maxlen:
            self.history.append(ChatTurn(role=role, content=content))

    async def chat(self, prompt: str, context: str = "") -> str:
        final_prompt = build_prompt(
            system_prompt=self.system_prompt,
            history=list(self.history),
            prompt=prompt,
            context=context,
        )
        log_llm(f"{self.llm_provider}/{self.llm_model}: {prompt[:60]}")
        text = await call_llm_text(
            prompt=final_prompt,
            llm_provider=self.llm_provider,
            llm_model=self.llm_model,
        )
        self._remember("user", prompt)
        self._remember("assistant", text)
        return text


__all__ = [
    "DEFAULT_LINES",
    "AMBIENT_PROMPT",
    "DialogueError",
    "DialogueProvider",
    "LLMDialogueProvider",
    "choose_ambient_line",
]
