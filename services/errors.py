"""Errors raised by the service layer."""
from __future__ import annotations


class FormValidationError(Exception):
    """User input was rejected; nothing was persisted."""

    def __init__(self, violations: list[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = violations


class GenerationError(Exception):
    """The AI job draft could not be produced."""


class AIUnavailableError(GenerationError):
    """No credential is configured for the generative AI service."""
