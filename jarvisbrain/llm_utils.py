"""Helper utilities for LLM calls: prompt assembly, retries and timeouts."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Sequence

from mirascope import llm
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from .logging_utils import log_llm, log_warn


LLM_TIMEOUT_SECONDS = 20.0


class DialogueError(RuntimeError):
    """Raised when the dialogue provider cannot produce a usable line."""


class EmptyResponseError(DialogueError):
    """The model answered, but with nothing worth saying."""


@dataclass(slots=True)
class ChatTurn:
    role: str
    content: str


def build_prompt(
    *,
    system_prompt: str,
    history: Sequence[ChatTurn],
    prompt: str,
    context: str = "",
) -> str:
    """Flatten system prompt, prior turns and the new request into one prompt.

    The new request carries the context block underneath it, separated by a
    blank line, so the model can tell instruction from situation.
    """
    sections: list[str] = []
    if system_prompt.strip():
        sections.append(system_prompt.strip())
    for turn in history:
        sections.append(f"{turn.role.upper()}: {turn.content}")
    request = prompt.strip()
    if context.strip():
        request = f"{request}\n\nContext:\n{context.strip()}"
    sections.append(f"USER: {request}")
    return "\n\n".join(sections)


def extract_text(response: Any) -> str:
    """Pull the text content out of a provider response (or a plain string)."""
    if response is None:
        return ""
    if isinstance(response, str):
        return response.strip()
    content = getattr(response, "content", None)
    if isinstance(content, str):
        return content.strip()
    return str(response).strip()


async def call_llm_text(
    *,
    prompt: str,
    llm_provider: str,
    llm_model: str,
    max_attempts: int = 2,
    timeout: float = LLM_TIMEOUT_SECONDS,
) -> str:
    """Invoke a free-text LLM call, retrying when the answer comes back empty.

    Only empty answers are retried. Provider errors and timeouts propagate
    immediately as :class:`DialogueError` since another attempt rarely helps.
    """
    @llm.call(provider=llm_provider, model=llm_model)
    async def invoke(final_prompt: str) -> str:
        return final_prompt

    attempt_number = 0
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(EmptyResponseError),
        stop=stop_after_attempt(max_attempts),
        reraise=True,
    ):
        with attempt:
            attempt_number += 1
            if attempt_number > 1:
                log_llm(f"Retry {attempt_number}/{max_attempts} after empty response")
            try:
                response = await asyncio.wait_for(invoke(prompt), timeout=timeout)
            except asyncio.TimeoutError as exc:
                log_warn(f"LLM call timed out after {timeout:g}s")
                raise DialogueError(f"timed out after {timeout:g}s") from exc
            except DialogueError:
                raise
            except Exception as exc:
                raise DialogueError(f"{llm_provider} error: {exc}") from exc

            text = extract_text(response)
            if not text:
                raise EmptyResponseError("empty response")
            return text

    raise DialogueError("LLM retry mechanism exited unexpectedly")
