"""Tests for the verification orchestrator."""

import asyncio

import pytest

from addressflow.core.errors import ConfigurationError, ProviderError
from addressflow.geocoding.retry import RetryPolicy
from addressflow.geocoding.runtime import ProviderRuntime
from addressflow.geocoding.service import GeocodeService
from addressflow.orchestrator import VerificationOrchestrator, build_orchestrator
from addressflow.suggestions.models import MatchLevel, ProviderShape, ProviderSource

TES_ITEMS = [
    {"street": "Marszałkowska", "houseNumber": "10", "postalCode": "00-123", "city": "Warszawa", "score": 0.8},
    {"street": "Marszałkowska", "houseNumber": "10", "postalCode": "00-124", "city": "Warszawa", "score": 0.6},
]


def _orchestrator(geocode_provider, suggestion_provider=None, tes_provider=None, delay=0.01):
    return VerificationOrchestrator(
        GeocodeService(geocode_provider, retry_policy=RetryPolicy(base_delay=0, jitter=0)),
        suggestion_provider=suggestion_provider,
        tes_provider=tes_provider,
        debounce_delay=delay,
    )


async def _drain_orphans(orchestrator: VerificationOrchestrator) -> None:
    while orchestrator.budget.orphaned:
        await asyncio.sleep(0.05)


class TestVerify:
    """Tests for debounced verification."""

    async def test_valid_address_gets_instant_and_ranked_suggestions(
        self, geocode_provider, make_suggester, valid_fragment
    ):
        """Test the geocode becomes the top suggestion and TES results follow."""
        tes = make_suggester(items=TES_ITEMS)
        orchestrator = _orchestrator(geocode_provider, tes_provider=tes)

        result = await orchestrator.verify(valid_fragment)

        assert result.valid
        assert result.address.postal_code == "00-123"
        assert result.instant.match_score == 1.0
        assert result.instant.match_level is MatchLevel.GEOCODER
        assert result.instant.provider_source is ProviderSource.GOOGLE_CLIENT
        assert result.instant.full_address_label == "Marszałkowska 10, 00-123 Warszawa, Polska"
        # the first TES item duplicates the instant suggestion
        assert [s.postal_code for s in result.suggestions] == ["00-123", "00-124"]
        assert result.best == result.instant
        assert result.conflicts.has_postal_conflict
        assert tes.calls == [("Marszałkowska 10, 00-123 Warszawa", "PL")]

    async def test_invalid_input_skips_providers(self, geocode_provider, make_suggester):
        tes = make_suggester(items=TES_ITEMS)
        orchestrator = _orchestrator(geocode_provider, tes_provider=tes)

        result = await orchestrator.verify({"city": "Warszawa", "postalCode": "123"})

        assert not result.valid
        assert result.validation.errors == {
            "street": "street is required.",
            "postal_code": "Invalid postal code format (expected XX-XXX).",
        }
        assert result.suggestions == []
        assert result.instant is None
        assert geocode_provider.calls == []
        assert tes.calls == []

    async def test_provider_failures_degrade_to_no_results(
        self, make_geocoder, make_suggester, valid_fragment
    ):
        geocoder = make_geocoder(errors=[ProviderError("Bad request", status_code=400)])
        places = make_suggester(shape=ProviderShape.PLACES, error=RuntimeError("offline"))
        tes = make_suggester(items=TES_ITEMS[1:])
        orchestrator = _orchestrator(geocoder, suggestion_provider=places, tes_provider=tes)

        result = await orchestrator.verify(valid_fragment)

        assert result.valid
        assert result.instant is None
        assert [s.provider_source for s in result.suggestions] == [ProviderSource.TES]

    async def test_newer_call_supersedes_pending_one(
        self, geocode_provider, valid_fragment
    ):
        orchestrator = _orchestrator(geocode_provider, delay=0.05)

        first = asyncio.create_task(orchestrator.verify(valid_fragment))
        await asyncio.sleep(0)
        second = await orchestrator.verify({**valid_fragment, "houseNumber": "12"})

        assert await first is None
        assert second.address.house_number == "12"
        assert len(geocode_provider.calls) == 1

    async def test_invalid_input_cancels_pending_call(
        self, geocode_provider, valid_fragment
    ):
        orchestrator = _orchestrator(geocode_provider, delay=0.05)

        pending = asyncio.create_task(orchestrator.verify(valid_fragment))
        await asyncio.sleep(0)
        invalid = await orchestrator.verify({})

        assert await pending is None
        assert not invalid.valid
        assert geocode_provider.calls == []

    async def test_instant_outranks_tied_provider_for_any_geocoder(
        self, make_geocoder, warsaw_geocode, make_suggester, valid_fragment
    ):
        """Test a Nominatim-backed instant result still wins the tie-break."""
        geocoder = make_geocoder(result=warsaw_geocode)
        geocoder.source = ProviderSource.NOMINATIM
        tes = make_suggester(
            items=[
                {"street": "Marszałkowska", "houseNumber": "12", "postalCode": "00-123", "city": "Warszawa", "score": 1.0},
            ]
        )
        orchestrator = _orchestrator(geocoder, tes_provider=tes)

        result = await orchestrator.verify(valid_fragment)

        assert result.instant.instant
        assert result.instant.provider_source is ProviderSource.NOMINATIM
        assert [(s.provider_source, s.house_number) for s in result.suggestions] == [
            (ProviderSource.NOMINATIM, "10"),
            (ProviderSource.TES, "12"),
        ]
        assert result.best == result.instant

    async def test_keys_are_debounced_independently(
        self, geocode_provider, valid_fragment
    ):
        """Test verifying two keys within one debounce window keeps both."""
        orchestrator = _orchestrator(geocode_provider, delay=0.05)

        pickup, delivery = await asyncio.gather(
            orchestrator.verify(valid_fragment, key=("order-1", "pickup")),
            orchestrator.verify({**valid_fragment, "houseNumber": "12"}, key=("order-1", "delivery")),
        )

        assert pickup.address.house_number == "10"
        assert delivery.address.house_number == "12"
        assert len(geocode_provider.calls) == 2

    async def test_cancel_is_scoped_to_one_key(self, geocode_provider, valid_fragment):
        orchestrator = _orchestrator(geocode_provider, delay=0.05)

        pickup = asyncio.create_task(orchestrator.verify(valid_fragment, key="pickup"))
        delivery = asyncio.create_task(orchestrator.verify(valid_fragment, key="delivery"))
        await asyncio.sleep(0)
        orchestrator.cancel("pickup")

        assert await pickup is None
        assert (await delivery).valid
        assert len(geocode_provider.calls) == 1

    async def test_repeated_address_uses_cache(self, geocode_provider, valid_fragment):
        orchestrator = _orchestrator(geocode_provider)

        await orchestrator.verify(valid_fragment)
        await orchestrator.verify(dict(valid_fragment))

        assert len(geocode_provider.calls) == 1

    def test_requires_geocoder(self):
        with pytest.raises(ConfigurationError):
            VerificationOrchestrator(None)


class TestVerifyWithin:
    """Tests for budgeted verification."""

    async def test_slow_tes_is_dropped(self, geocode_provider, make_suggester, valid_fragment):
        """Test a provider missing its budget contributes nothing."""
        tes = make_suggester(items=TES_ITEMS, delay=0.4)
        orchestrator = _orchestrator(geocode_provider, tes_provider=tes)

        result = await orchestrator.verify_within(valid_fragment, timeout=0.1)

        assert result.timed_out == frozenset({"tes"})
        assert set(result.timings) == {"geocode", "tes"}
        assert result.timings["tes"] >= 150
        assert result.instant is not None
        assert result.suggestions == [result.instant]
        await _drain_orphans(orchestrator)

    async def test_failed_provider_is_not_a_timeout(
        self, geocode_provider, make_suggester, valid_fragment
    ):
        places = make_suggester(shape=ProviderShape.PLACES, error=RuntimeError("offline"))
        tes = make_suggester(items=TES_ITEMS)
        orchestrator = _orchestrator(geocode_provider, suggestion_provider=places, tes_provider=tes)

        result = await orchestrator.verify_within(valid_fragment, timeout=0.5)

        assert result.timed_out == frozenset()
        assert set(result.timings) == {"geocode", "suggestions", "tes"}
        assert len(result.suggestions) == 2

    async def test_invalid_input(self, geocode_provider):
        orchestrator = _orchestrator(geocode_provider)

        result = await orchestrator.verify_within({"street": "Polna"})

        assert not result.valid
        assert result.timings == {}
        assert geocode_provider.calls == []

    async def test_invalidate_discards_in_flight_result(
        self, make_geocoder, warsaw_geocode, valid_fragment
    ):
        orchestrator = _orchestrator(make_geocoder(result=warsaw_geocode, delay=0.05))

        pending = asyncio.create_task(orchestrator.verify_within(valid_fragment, key="order-1"))
        await asyncio.sleep(0.01)
        orchestrator.invalidate("order-1")

        assert await pending is None


class TestBuildOrchestrator:
    """Tests for build_orchestrator."""

    def test_wires_runtime_providers(self, test_settings, geocode_provider, make_suggester):
        tes = make_suggester()
        runtime = ProviderRuntime(
            test_settings, geocode_provider=geocode_provider, suggestion_provider=tes
        )

        orchestrator = build_orchestrator(test_settings, runtime)

        assert runtime.started
        assert orchestrator.geocoder.provider is geocode_provider
        assert orchestrator.tes_provider is tes
        assert orchestrator.suggestion_provider is None
        assert orchestrator.debounce_delay == 0.01
        assert orchestrator.debouncer(("order-1", "pickup")).delay == 0.01

    def test_places_provider_is_kept_as_suggestions(
        self, test_settings, geocode_provider, make_suggester
    ):
        places = make_suggester(shape=ProviderShape.PLACES)
        runtime = ProviderRuntime(
            test_settings, geocode_provider=geocode_provider, suggestion_provider=places
        )

        orchestrator = build_orchestrator(test_settings, runtime)

        assert orchestrator.suggestion_provider is places
        assert orchestrator.tes_provider is None

    def test_missing_geocoder(self, test_settings):
        with pytest.raises(ConfigurationError):
            build_orchestrator(test_settings, ProviderRuntime(test_settings))
