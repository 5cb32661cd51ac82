"""Provider lifecycle owned by application bootstrap."""

import logging
from typing import Literal

from addressflow.core.config import Settings
from addressflow.core.errors import ConfigurationError
from addressflow.geocoding.providers import (
    GeocodeProvider,
    NominatimGeocodeProvider,
    SuggestionProvider,
)
from addressflow.scheduling.polling import OperationPoller
from addressflow.suggestions.tes import TesSuggestionProvider

logger = logging.getLogger(__name__)

ProviderKind = Literal["geocode", "suggestions"]


class ProviderRuntime:
    """Creates, hands out and closes the configured providers.

    One runtime is built per application (or test) and passed to whatever
    needs providers; nothing is cached at module level. Provider factories
    that fail are logged and leave that provider unavailable.
    """

    def __init__(
        self,
        settings: Settings,
        geocode_provider: GeocodeProvider | None = None,
        suggestion_provider: SuggestionProvider | None = None,
    ) -> None:
        self.settings = settings
        self._geocode = geocode_provider
        self._suggestions = suggestion_provider
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> "ProviderRuntime":
        """Instantiate providers from settings; calling again is a no-op."""
        if self._started:
            return self

        if self._geocode is None and self.settings.GEOCODING_PROVIDER == "nominatim":
            try:
                self._geocode = NominatimGeocodeProvider(
                    user_agent=self.settings.NOMINATIM_USER_AGENT,
                    timeout=self.settings.GEOCODING_TIMEOUT,
                    domain=self.settings.NOMINATIM_DOMAIN,
                )
            except Exception as e:
                logger.error(f"Failed to initialize Nominatim geocoder: {e}")
                self._geocode = None

        if self._suggestions is None and self.settings.TES_BASE_URL:
            try:
                self._suggestions = TesSuggestionProvider(
                    base_url=self.settings.TES_BASE_URL,
                    poller=OperationPoller(
                        interval=self.settings.TES_POLL_INTERVAL,
                        max_attempts=self.settings.TES_POLL_MAX_ATTEMPTS,
                    ),
                    timeout=self.settings.TES_REQUEST_TIMEOUT,
                )
            except Exception as e:
                logger.error(f"Failed to initialize TES client: {e}")
                self._suggestions = None

        self._started = True
        logger.info(
            f"Provider runtime started - geocode: {self.is_ready('geocode')}, "
            f"suggestions: {self.is_ready('suggestions')}"
        )
        return self

    def is_ready(self, kind: ProviderKind) -> bool:
        if kind == "geocode":
            return self._geocode is not None
        if kind == "suggestions":
            return self._suggestions is not None
        raise ValueError(f"Unknown provider kind: {kind}")

    def geocode_provider(self) -> GeocodeProvider:
        """Return the geocode provider.

        Raises:
            ConfigurationError: If the runtime was not started or no geocoder
                is configured
        """
        if not self._started:
            raise ConfigurationError("ProviderRuntime.start() has not been called")
        if self._geocode is None:
            raise ConfigurationError(
                f"No geocode provider available (GEOCODING_PROVIDER={self.settings.GEOCODING_PROVIDER})"
            )
        return self._geocode

    def suggestion_provider(self) -> SuggestionProvider | None:
        """Return the suggestion provider, or None when none is configured."""
        if not self._started:
            raise ConfigurationError("ProviderRuntime.start() has not been called")
        return self._suggestions

    async def aclose(self) -> None:
        for provider in (self._geocode, self._suggestions):
            if provider is not None:
                await provider.aclose()
        self._geocode = None
        self._suggestions = None
        self._started = False
