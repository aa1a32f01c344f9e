"""Error taxonomy. None of these escape the core; each has a documented fallback."""

from __future__ import annotations


class PredictMaxError(Exception):
    """Base for all PredictMax errors."""


class DataError(PredictMaxError):
    """Malformed or missing field in a raw source record. Resolved via defaults."""


class EnrichmentUnavailable(PredictMaxError):
    """A domain or external-odds provider failed or returned nothing."""


class ReasoningUnavailable(PredictMaxError):
    """The reasoning-text collaborator failed; template text is used instead."""


class ConfigurationError(PredictMaxError):
    """Invalid or missing configuration value; a fixed default is used."""
