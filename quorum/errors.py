"""Error types for the orchestration pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from .models import RawResult, ScoredResult
    from .policy import EnforcementResult


class QuorumError(click.ClickException):
    """Base class for errors surfaced to callers of the pipeline."""


class InvalidRequestError(QuorumError):
    """Raised when a request violates its input contract (empty prompt, bad model list, ...)."""


class EmptyInputError(QuorumError):
    """Raised when consensus is requested over an empty result set."""

    def __init__(self, message: str = "No results to build consensus from") -> None:
        super().__init__(message)


class NoValidOutputError(QuorumError):
    """Raised when every requested model failed to produce usable output."""

    def __init__(self, message: str, best: RawResult | ScoredResult | None = None) -> None:
        super().__init__(message)
        self.best = best


class PolicyBlockedError(QuorumError):
    """Raised in batch mode when the content policy blocks generated code."""

    def __init__(self, enforcement: EnforcementResult) -> None:
        super().__init__(enforcement.message)
        self.enforcement = enforcement


class ProviderError(RuntimeError):
    """Raised inside an adapter when a provider call fails.

    Never escapes an adapter: it is converted into an error result.
    """


def error_chain_message(exc: BaseException) -> str:
    """Best-effort one-line description of an exception and its causes."""
    parts: list[str] = []
    current: BaseException | None = exc
    seen: list[BaseException] = []
    while current is not None and current not in seen:
        seen.append(current)
        text = str(current) or type(current).__name__
        if text not in parts:
            parts.append(text)
        current = current.__cause__
    return ": ".join(parts)


class ProviderTimeoutError(ProviderError):
    """Raised when a polled provider job exceeds its attempt ceiling."""
