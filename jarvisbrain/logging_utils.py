"""Logging utilities for the brain.

Color-coded console output so planner decisions, world commands and dialogue
calls are easy to tell apart while watching a live agent.
"""

import os
from enum import Enum


class Color(Enum):
    """ANSI color codes for terminal output."""

    BLUE = "\033[94m"      # Decisions (planner, perception)
    YELLOW = "\033[93m"    # Dialogue / LLM calls
    RED = "\033[91m"       # Errors and warnings
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata
    GREY = "\033[90m"      # Debug chatter

    BOLD = "\033[1m"
    RESET = "\033[0m"


LEVELS = ("debug", "info", "warn", "error")


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes unless JARVIS_NO_COLOR is set."""
    if os.getenv("JARVIS_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


def _threshold() -> int:
    level = os.getenv("LOG_LEVEL", "info").lower()
    if level == "warning":
        level = "warn"
    return LEVELS.index(level) if level in LEVELS else LEVELS.index("info")


def should_log(level: str) -> bool:
    """Return True when ``level`` passes the LOG_LEVEL threshold."""
    return LEVELS.index(level) >= _threshold()


def log_debug(message: str) -> None:
    if should_log("debug"):
        print(colored(f"{LOG_TAG_DEBUG} {message}", Color.GREY))


def log_info(message: str) -> None:
    if should_log("info"):
        print(colored(f"{LOG_TAG_INFO} {message}", Color.CYAN))


def log_decision(message: str) -> None:
    """Log a planner/perception decision (blue)."""
    if should_log("info"):
        print(colored(f"{LOG_TAG_DECISION} {message}", Color.BLUE))


def log_llm(message: str) -> None:
    """Log a dialogue provider call (yellow)."""
    if should_log("debug"):
        print(colored(f"{LOG_TAG_LLM} {message}", Color.YELLOW))


def log_warn(message: str) -> None:
    if should_log("warn"):
        print(colored(f"{LOG_TAG_ERROR} {message}", Color.RED))


def log_error(message: str) -> None:
    if should_log("error"):
        print(colored(f"{LOG_TAG_ERROR} {message}", Color.RED, bold=True))


def log_success(message: str) -> None:
    if should_log("info"):
        print(colored(f"{LOG_TAG_SUCCESS} {message}", Color.GREEN))


# Markers for message types (color-blind accessible)
LOG_TAG_DECISION = "[•]"
LOG_TAG_LLM = "[AI]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"
LOG_TAG_INFO = "[i]"
LOG_TAG_DEBUG = "[.]"
