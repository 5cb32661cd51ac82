"""Realtime verification of typed addresses.

The orchestrator composes the pipeline behind one ``verify`` call:
normalize, validate, debounce, then geocode and look up suggestions
concurrently, and finally merge, rank and flag conflicts. Provider failures
degrade to "no result" so a flaky backend never blocks typing.
"""

import asyncio
import time
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Any

from addressflow.address.formatter import AddressFormatter
from addressflow.address.models import CanonicalAddress, GeocodeResult, ValidationResult
from addressflow.address.normalizer import AddressNormalizer
from addressflow.address.validator import AddressValidator
from addressflow.core.config import Settings
from addressflow.core.errors import ConfigurationError
from addressflow.core.logging import get_logger
from addressflow.core.metrics import BUDGET_TIMEOUTS, PROVIDER_FAILURES, VERIFICATION_SECONDS
from addressflow.core.outcome import Outcome
from addressflow.geocoding.cache import GeocodeCache
from addressflow.geocoding.providers import SuggestionProvider
from addressflow.geocoding.retry import RetryPolicy
from addressflow.geocoding.runtime import ProviderRuntime
from addressflow.geocoding.service import GeocodeService
from addressflow.scheduling.budget import LatencyBudget
from addressflow.scheduling.debounce import DebouncedExecutor
from addressflow.scheduling.queue import ConcurrencyLimitedQueue
from addressflow.scheduling.stale import StaleResultGuard
from addressflow.suggestions.conflicts import SuggestionConflictDetector, SuggestionConflicts
from addressflow.suggestions.merger import SuggestionMerger
from addressflow.suggestions.models import MatchLevel, ProviderShape, Suggestion
from addressflow.suggestions.normalizer import SuggestionNormalizer
from addressflow.suggestions.ranker import SuggestionRanker

logger = get_logger().bind(module="verification_orchestrator")

DEFAULT_KEY = "verify"


@dataclass
class VerificationResult:
    """Everything the editor needs to show after one verification."""

    address: CanonicalAddress
    validation: ValidationResult
    instant: Suggestion | None = None
    suggestions: list[Suggestion] = field(default_factory=list)
    conflicts: SuggestionConflicts = field(default_factory=SuggestionConflicts)
    elapsed_ms: int = 0
    timings: dict[str, int] = field(default_factory=dict)
    timed_out: frozenset[str] = frozenset()

    @property
    def valid(self) -> bool:
        return self.validation.valid

    @property
    def best(self) -> Suggestion | None:
        return self.suggestions[0] if self.suggestions else None


class VerificationOrchestrator:
    """Runs verifications for one editor session."""

    def __init__(
        self,
        geocoder: GeocodeService | None,
        suggestion_provider: SuggestionProvider | None = None,
        tes_provider: SuggestionProvider | None = None,
        normalizer: AddressNormalizer | None = None,
        validator: AddressValidator | None = None,
        debounce_delay: float = 0.35,
        guard: StaleResultGuard | None = None,
        budget: LatencyBudget | None = None,
        suggestion_normalizer: SuggestionNormalizer | None = None,
        merger: SuggestionMerger | None = None,
        ranker: SuggestionRanker | None = None,
        conflict_detector: SuggestionConflictDetector | None = None,
        formatter: AddressFormatter | None = None,
    ) -> None:
        if geocoder is None:
            raise ConfigurationError("VerificationOrchestrator requires a geocoder")
        self.geocoder = geocoder
        self.suggestion_provider = suggestion_provider
        self.tes_provider = tes_provider
        self.normalizer = normalizer or AddressNormalizer()
        self.validator = validator or AddressValidator(
            default_country=self.normalizer.default_country
        )
        self.debounce_delay = debounce_delay
        self._debouncers: dict[Hashable, DebouncedExecutor] = {}
        self.guard = guard or StaleResultGuard()
        self.budget = budget or LatencyBudget()
        self.suggestion_normalizer = suggestion_normalizer or SuggestionNormalizer(
            self.normalizer.default_country
        )
        self.merger = merger or SuggestionMerger()
        self.ranker = ranker or SuggestionRanker()
        self.conflict_detector = conflict_detector or SuggestionConflictDetector()
        self.formatter = formatter or AddressFormatter(self.normalizer.default_country)

    async def verify(
        self, base_input: Any, key: Hashable = DEFAULT_KEY
    ) -> VerificationResult | None:
        """Debounced verification of the latest input.

        Args:
            base_input: Raw address fragment as typed
            key: Logical key for latest-wins ordering, e.g. order id and side

        Returns:
            The verification result; a result carrying only validation errors
            for invalid input; or None when a newer call superseded this one
        """
        address = self.normalizer.normalize(base_input)
        validation = self.validator.validate(address)
        if not validation.valid:
            self.cancel(key)
            return VerificationResult(address=address, validation=validation)

        return await self.debouncer(key).run(
            lambda: self.guard.run(key, lambda: self._lookup(address, validation))
        )

    async def verify_within(
        self,
        base_input: Any,
        timeout: float | None = None,
        key: Hashable = DEFAULT_KEY,
    ) -> VerificationResult | None:
        """Verification with an independent latency budget per provider.

        Geocoding and suggestions get ``timeout`` seconds each and TES twice
        that. Providers that miss their budget contribute nothing; their
        calls are left to finish in the background.

        Returns:
            The result with per-provider timings, or None when superseded
        """
        address = self.normalizer.normalize(base_input)
        validation = self.validator.validate(address)
        if not validation.valid:
            return VerificationResult(address=address, validation=validation)

        budget = self.budget.default_timeout if timeout is None else timeout
        return await self.guard.run(
            key, lambda: self._lookup_within(address, validation, budget)
        )

    def invalidate(self, key: Hashable = DEFAULT_KEY) -> int:
        """Void any in-flight verification for ``key``."""
        return self.guard.invalidate(key)

    def debouncer(self, key: Hashable = DEFAULT_KEY) -> DebouncedExecutor:
        """Debouncer for one key; keys never supersede each other."""
        executor = self._debouncers.get(key)
        if executor is None:
            executor = self._debouncers[key] = DebouncedExecutor(self.debounce_delay)
        return executor

    def cancel(self, key: Hashable | None = None) -> None:
        """Drop the pending debounced verification for ``key``, or for every key."""
        if key is None:
            executors = list(self._debouncers.values())
        else:
            executors = [self._debouncers[key]] if key in self._debouncers else []
        for executor in executors:
            executor.cancel()

    async def _lookup(
        self, address: CanonicalAddress, validation: ValidationResult
    ) -> VerificationResult:
        start = time.perf_counter()
        geo, suggested, tes = await asyncio.gather(
            self._geocode(address),
            self._suggest(self.suggestion_provider, address, "suggestions"),
            self._suggest(self.tes_provider, address, "tes"),
        )
        return self._assemble(
            address, validation, geo, [suggested, tes], _elapsed_ms(start)
        )

    async def _lookup_within(
        self, address: CanonicalAddress, validation: ValidationResult, timeout: float
    ) -> VerificationResult:
        start = time.perf_counter()
        free_text = self.formatter.free_text(address)
        calls = {
            "geocode": (lambda: self.geocoder.geocode(address), timeout, None),
        }
        if self.suggestion_provider is not None:
            provider = self.suggestion_provider
            calls["suggestions"] = (
                lambda: provider.suggest_for(address, free_text),
                timeout,
                [],
            )
        if self.tes_provider is not None:
            tes = self.tes_provider
            calls["tes"] = (
                lambda: tes.suggest_for(address, free_text),
                timeout * 2,
                [],
            )

        outcomes: list[Outcome[Any]] = await asyncio.gather(
            *(
                self.budget.run_with_timeout(factory, budget, fallback)
                for factory, budget, fallback in calls.values()
            )
        )
        by_name = dict(zip(calls, outcomes))
        for name, outcome in by_name.items():
            if outcome.timed_out:
                BUDGET_TIMEOUTS.labels(provider=name).inc()
                logger.info(f"{name} exceeded its budget after {outcome.elapsed_ms}ms")
            elif outcome.failed:
                PROVIDER_FAILURES.labels(provider=name).inc()
                logger.warning(f"{name} lookup failed: {outcome.error}")

        suggestion_lists = []
        if "suggestions" in by_name:
            suggestion_lists.append(
                self._normalize(self.suggestion_provider, by_name["suggestions"].value)
            )
        if "tes" in by_name:
            suggestion_lists.append(self._normalize(self.tes_provider, by_name["tes"].value))

        result = self._assemble(
            address,
            validation,
            by_name["geocode"].value,
            suggestion_lists,
            _elapsed_ms(start),
        )
        result.timings = {name: o.elapsed_ms for name, o in by_name.items()}
        result.timed_out = frozenset(n for n, o in by_name.items() if o.timed_out)
        return result

    async def _geocode(self, address: CanonicalAddress) -> GeocodeResult | None:
        try:
            return await self.geocoder.geocode(address)
        except Exception as e:
            PROVIDER_FAILURES.labels(provider="geocode").inc()
            logger.warning(f"Geocoding failed, continuing without instant result: {e}")
            return None

    async def _suggest(
        self,
        provider: SuggestionProvider | None,
        address: CanonicalAddress,
        name: str,
    ) -> list[Suggestion]:
        if provider is None:
            return []
        try:
            raw = await provider.suggest_for(address, self.formatter.free_text(address))
        except Exception as e:
            PROVIDER_FAILURES.labels(provider=name).inc()
            logger.warning(f"{name} lookup failed, continuing without suggestions: {e}")
            return []
        return self._normalize(provider, raw)

    def _normalize(self, provider: SuggestionProvider | None, raw: Any) -> list[Suggestion]:
        shape = getattr(provider, "shape", ProviderShape.PLACES)
        return self.suggestion_normalizer.normalize_batch(raw, shape)

    def _instant(
        self, address: CanonicalAddress, geo: GeocodeResult | None
    ) -> Suggestion | None:
        if geo is None:
            return None
        return Suggestion(
            full_address_label=geo.formatted_address,
            street=address.street or None,
            house_number=address.house_number,
            postal_code=address.postal_code or None,
            city=address.city or None,
            country_code=address.country,
            latitude=geo.latitude,
            longitude=geo.longitude,
            match_score=1.0,
            match_level=MatchLevel.GEOCODER,
            provider_source=self.geocoder.source,
            instant=True,
        )

    def _assemble(
        self,
        address: CanonicalAddress,
        validation: ValidationResult,
        geo: GeocodeResult | None,
        suggestion_lists: list[list[Suggestion]],
        elapsed_ms: int,
    ) -> VerificationResult:
        instant = self._instant(address, geo)
        merged = self.merger.merge(address, [[instant] if instant else [], *suggestion_lists])
        ranked = self.ranker.rank(address, merged)
        conflicts = self.conflict_detector.analyze(ranked)
        VERIFICATION_SECONDS.observe(elapsed_ms / 1000)
        logger.debug(
            "Verification completed",
            elapsed_ms=elapsed_ms,
            suggestions=len(ranked),
            instant=instant is not None,
        )
        return VerificationResult(
            address=address,
            validation=validation,
            instant=instant,
            suggestions=ranked,
            conflicts=conflicts,
            elapsed_ms=elapsed_ms,
        )


def build_orchestrator(
    settings: Settings, runtime: ProviderRuntime
) -> VerificationOrchestrator:
    """Wire an orchestrator from settings and a started provider runtime.

    Raises:
        ConfigurationError: If no geocode provider is available
    """
    runtime.start()
    geocoder = GeocodeService(
        provider=runtime.geocode_provider(),
        cache=GeocodeCache(max_entries=settings.GEOCODE_CACHE_MAX_ENTRIES),
        retry_policy=RetryPolicy(
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            base_delay=settings.RETRY_BASE_DELAY,
            jitter=settings.RETRY_JITTER,
        ),
        queue=ConcurrencyLimitedQueue(settings.QUEUE_CONCURRENCY),
        normalizer=AddressNormalizer(settings.DEFAULT_COUNTRY),
    )

    provider = runtime.suggestion_provider()
    tes_provider = None
    if provider is not None and provider.shape is ProviderShape.TES:
        provider, tes_provider = None, provider

    return VerificationOrchestrator(
        geocoder,
        suggestion_provider=provider,
        tes_provider=tes_provider,
        normalizer=AddressNormalizer(settings.DEFAULT_COUNTRY),
        debounce_delay=settings.DEBOUNCE_SECONDS,
        budget=LatencyBudget(settings.LATENCY_BUDGET_SECONDS),
    )


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))
