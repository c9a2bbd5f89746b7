"""
REST Poller Tests
=================

Cache freshness at startup, fetch cycle and failure isolation for the
weather and exchange-rate blocks.
"""

from unittest.mock import MagicMock

import pytest
import requests

from statusbar.blocks.currency_block import CurrencyBlock
from statusbar.blocks.weather_block import (
    OPEN_METEO_URL,
    WeatherBlock,
    format_temperature,
    parse_location,
)
from statusbar.core.cache_store import CachedValue, SidecarCache
from statusbar.core.compositor import Slot


NOW = 1_700_000_000


def make_response(payload=None, status_error=None, json_error=None):
    response = MagicMock()
    if status_error:
        response.raise_for_status.side_effect = status_error
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


def make_session(*responses):
    session = MagicMock(spec=requests.Session)
    session.get.side_effect = list(responses)
    return session


@pytest.fixture
def cache(tmp_path):
    return SidecarCache(tmp_path / 'weather')


def weather_block(fake_scheduler, compositor, cache, session=None, location='52.52,13.41', interval=3600):
    return WeatherBlock(
        fake_scheduler,
        compositor,
        Slot.WEATHER,
        cache,
        interval=interval,
        session=session or make_session(),
        clock=lambda: NOW,
        location=location,
    )


class TestStartup:
    """Cache freshness decides between publishing and fetching."""

    def test_fresh_cache_published_and_fetch_deferred(self, fake_scheduler, plain_compositor, cache):
        cache.store(CachedValue(text="W21.0", timestamp=NOW - 100))
        session = make_session()
        block = weather_block(fake_scheduler, plain_compositor, cache, session=session)

        block.start()

        assert plain_compositor.fragment(Slot.WEATHER) == "W21.0"
        assert fake_scheduler.delays == [3500]
        session.get.assert_not_called()

    def test_stale_cache_fetches_immediately(self, fake_scheduler, plain_compositor, cache):
        cache.store(CachedValue(text="W21.0", timestamp=NOW - 3600))
        block = weather_block(fake_scheduler, plain_compositor, cache)

        block.start()

        assert plain_compositor.fragment(Slot.WEATHER) == ""
        assert fake_scheduler.delays == [0]

    def test_missing_cache_fetches_immediately(self, fake_scheduler, plain_compositor, cache):
        block = weather_block(fake_scheduler, plain_compositor, cache)
        block.start()

        assert fake_scheduler.delays == [0]
        assert not block.cached.synced

    def test_future_timestamp_treated_as_stale(self, fake_scheduler, plain_compositor, cache):
        cache.store(CachedValue(text="W21.0", timestamp=NOW + 500))
        block = weather_block(fake_scheduler, plain_compositor, cache)
        block.start()

        assert fake_scheduler.delays == [0]

    def test_oversized_cached_fragment_is_refetched(self, fake_scheduler, plain_compositor, cache):
        cache.path.write_text("x" * 200 + f"\n{NOW - 100}\n", encoding='utf-8')
        block = weather_block(fake_scheduler, plain_compositor, cache)

        block.start()

        assert plain_compositor.fragment(Slot.WEATHER) == ""
        assert fake_scheduler.delays == [0]

    def test_unconfigured_block_never_arms(self, fake_scheduler, plain_compositor, cache):
        cache.store(CachedValue(text="W21.0", timestamp=NOW - 100))
        block = weather_block(fake_scheduler, plain_compositor, cache, location='')

        block.start()

        assert fake_scheduler.timers == []
        assert plain_compositor.fragment(Slot.WEATHER) == ""
        assert not block.enabled


class TestFetch:
    """One request per cycle."""

    def test_success_publishes_persists_and_rearms(self, fake_scheduler, plain_compositor, cache):
        session = make_session(make_response({'current_weather': {'temperature': 12.34}}))
        block = weather_block(fake_scheduler, plain_compositor, cache, session=session)
        block.start()

        fake_scheduler.fire_next()

        expected = format_temperature(12.34)
        assert plain_compositor.fragment(Slot.WEATHER) == expected
        assert cache.load() == CachedValue(text=expected, timestamp=NOW)
        assert fake_scheduler.delays == [0, 3600]

        _, kwargs = session.get.call_args
        assert session.get.call_args[0][0] == OPEN_METEO_URL
        assert kwargs['params'] == {'latitude': 52.52, 'longitude': 13.41, 'current_weather': 'true'}

    def test_network_failure_keeps_fragment_and_rearms(self, fake_scheduler, plain_compositor, cache):
        cache.store(CachedValue(text="W-old", timestamp=NOW - 3600))
        session = make_session(requests.exceptions.ConnectionError("down"))
        block = weather_block(fake_scheduler, plain_compositor, cache, session=session)
        plain_compositor.update(Slot.WEATHER, "W-old")
        block.start()

        fake_scheduler.fire_next()

        assert plain_compositor.fragment(Slot.WEATHER) == "W-old"
        assert cache.load().timestamp == NOW - 3600
        assert fake_scheduler.delays == [0, 3600]
        assert "request failed" in block.last_error
        assert session.get.call_count == 1

    def test_http_error_is_not_retried(self, fake_scheduler, plain_compositor, cache):
        error = requests.exceptions.HTTPError("429 Too Many Requests")
        session = make_session(make_response(status_error=error))
        block = weather_block(fake_scheduler, plain_compositor, cache, session=session)
        block.start()

        fake_scheduler.fire_next()

        assert session.get.call_count == 1
        assert fake_scheduler.delays == [0, 3600]

    def test_parse_failure_keeps_fragment(self, fake_scheduler, plain_compositor, cache):
        session = make_session(make_response({'unexpected': True}))
        block = weather_block(fake_scheduler, plain_compositor, cache, session=session)
        block.start()

        fake_scheduler.fire_next()

        assert plain_compositor.fragment(Slot.WEATHER) == ""
        assert "parsing" in block.last_error
        assert fake_scheduler.delays == [0, 3600]

    def test_failure_leaves_other_blocks_untouched(self, fake_scheduler, plain_compositor, cache, tmp_path):
        plain_compositor.update(Slot.BATTERY, "B80")
        plain_compositor.update(Slot.MEMORY, "M4.2")
        plain_compositor.update(Slot.DATE, "D-Mon")
        before = plain_compositor.published

        session = make_session(requests.exceptions.Timeout())
        block = weather_block(fake_scheduler, plain_compositor, cache, session=session)
        block.start()
        fake_scheduler.fire_next()

        assert plain_compositor.published == before
        assert fake_scheduler.delays == [0, 3600]


class TestWeatherFormatting:

    def test_parse_location(self):
        assert parse_location("37.7749,-122.4194") == (37.7749, -122.4194)
        assert parse_location(" 1.5 , 2.5 ") == (1.5, 2.5)

    def test_parse_location_rejects_garbage(self):
        assert parse_location("somewhere") is None
        assert parse_location("1,2,3") is None
        assert parse_location("91,0") is None

    def test_malformed_location_disables_block(self, fake_scheduler, plain_compositor, cache):
        block = weather_block(fake_scheduler, plain_compositor, cache, location='nowhere')
        block.start()

        assert fake_scheduler.timers == []

    @pytest.mark.parametrize("temperature,colour", [
        (-5.0, '#1e90ff'),
        (0.0, '#00bfff'),
        (15.0, '#32cd32'),
        (20.0, '#ffd700'),
        (25.0, '#ffa500'),
        (35.0, '#ff4500'),
    ])
    def test_temperature_colour_bands(self, temperature, colour):
        text = format_temperature(temperature)

        assert text.startswith(f"^c{colour}^")
        assert text.endswith(f"{temperature:.1f}°C")


class TestCurrencyBlock:
    """Exchange-rate specialisation."""

    def currency_block(self, fake_scheduler, compositor, tmp_path, session=None, api_key='secret'):
        return CurrencyBlock(
            fake_scheduler,
            compositor,
            Slot.EXCHANGE_RATE,
            SidecarCache(tmp_path / 'currency'),
            interval=7200,
            session=session or make_session(),
            clock=lambda: NOW,
            api_key=api_key,
            base='usd',
            quote='eur',
        )

    def test_missing_api_key_disables_block(self, fake_scheduler, plain_compositor, tmp_path):
        block = self.currency_block(fake_scheduler, plain_compositor, tmp_path, api_key='')
        block.start()

        assert fake_scheduler.timers == []
        assert plain_compositor.published is None

    def test_success(self, fake_scheduler, plain_compositor, tmp_path):
        payload = {'result': 'success', 'conversion_rate': 0.9234}
        session = make_session(make_response(payload))
        block = self.currency_block(fake_scheduler, plain_compositor, tmp_path, session=session)
        block.start()

        fake_scheduler.fire_next()

        url = session.get.call_args[0][0]
        assert url == 'https://v6.exchangerate-api.com/v6/secret/pair/USD/EUR'
        assert plain_compositor.fragment(Slot.EXCHANGE_RATE).endswith("USD/EUR 0.92")
        assert fake_scheduler.delays == [0, 7200]

    def test_api_error_result_is_a_parse_failure(self, fake_scheduler, plain_compositor, tmp_path):
        payload = {'result': 'error', 'error-type': 'invalid-key'}
        session = make_session(make_response(payload))
        block = self.currency_block(fake_scheduler, plain_compositor, tmp_path, session=session)
        block.start()

        fake_scheduler.fire_next()

        assert plain_compositor.fragment(Slot.EXCHANGE_RATE) == ""
        assert "invalid-key" in block.last_error
        assert fake_scheduler.delays == [0, 7200]
