"""Exception hierarchy for the verification pipeline."""

from typing import Any

from addressflow.address.models import ValidationResult


class AddressFlowError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(AddressFlowError):
    """Raised when a required collaborator or setting is missing."""


class ValidationError(AddressFlowError):
    """Raised by callers that want to turn a failed validation into an error.

    ``verify`` itself never raises this; it reports the field errors in its
    result instead.
    """

    def __init__(self, result: ValidationResult | dict[str, str]) -> None:
        if not isinstance(result, ValidationResult):
            result = ValidationResult(valid=not result, errors=dict(result))
        self.result = result
        self.errors = dict(result.errors)
        fields = ", ".join(sorted(self.errors)) or "address"
        super().__init__(f"Invalid address fields: {fields}")


class ProviderError(AddressFlowError):
    """Transport or provider failure from a geocoding/suggestion backend."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        provider: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.provider = provider
        self.details = details


class PollingTimeoutError(AddressFlowError):
    """Raised when a long-running operation never completed within its budget."""

    def __init__(self, correlation_id: str, attempts: int) -> None:
        self.correlation_id = correlation_id
        self.attempts = attempts
        super().__init__(
            f"Polling for operation {correlation_id} timed out after {attempts} attempts."
        )
