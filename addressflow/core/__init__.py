"""Shared configuration, logging, errors and metrics."""

from addressflow.core.config import Settings, settings
from addressflow.core.errors import (
    AddressFlowError,
    ConfigurationError,
    PollingTimeoutError,
    ProviderError,
    ValidationError,
)
from addressflow.core.outcome import Outcome, OutcomeStatus

__all__ = [
    "Settings",
    "settings",
    "AddressFlowError",
    "ConfigurationError",
    "PollingTimeoutError",
    "ProviderError",
    "ValidationError",
    "Outcome",
    "OutcomeStatus",
]
