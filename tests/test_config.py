from __future__ import annotations

import math

import pytest

from pycitybikes._constants import STATION_STATUS_URL
from pycitybikes.config import CityBikesConfig
from pycitybikes.delivery import DeliveryMode
from pycitybikes.exceptions import CityBikesConfigError


def test_defaults() -> None:
    config = CityBikesConfig()

    assert config.status_url == STATION_STATUS_URL
    assert config.poll_interval == 300.0
    assert config.delivery_mode == DeliveryMode.SMOOTHED
    assert config.smooth_updates is True
    assert config.poll_on_connect is True


@pytest.mark.parametrize("interval", [0, -5.0, math.nan, math.inf, -math.inf])
def test_invalid_poll_interval_rejected(interval: float) -> None:
    with pytest.raises(CityBikesConfigError):
        CityBikesConfig(poll_interval=interval)


@pytest.mark.parametrize("timeout", [0, -1.0, math.nan, math.inf])
def test_invalid_request_timeout_rejected(timeout: float) -> None:
    with pytest.raises(CityBikesConfigError):
        CityBikesConfig(request_timeout=timeout)


@pytest.mark.parametrize("value", ["nan", "inf", "-Infinity"])
def test_from_env_rejects_non_finite_interval(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("CITYBIKES_POLL_INTERVAL", value)

    with pytest.raises(CityBikesConfigError):
        CityBikesConfig.from_env()


def test_delivery_mode_accepts_strings() -> None:
    config = CityBikesConfig(delivery_mode="IMMEDIATE")  # type: ignore[arg-type]

    assert config.delivery_mode is DeliveryMode.IMMEDIATE
    assert config.smooth_updates is False


def test_unknown_delivery_mode_rejected() -> None:
    with pytest.raises(CityBikesConfigError):
        CityBikesConfig(delivery_mode="bursty")  # type: ignore[arg-type]


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CITYBIKES_STATUS_URL", "https://example.com/status.json")
    monkeypatch.setenv("CITYBIKES_POLL_INTERVAL", "60")
    monkeypatch.setenv("CITYBIKES_DELIVERY_MODE", "immediate")
    monkeypatch.setenv("CITYBIKES_POLL_ON_CONNECT", "no")

    config = CityBikesConfig.from_env()

    assert config.status_url == "https://example.com/status.json"
    assert config.poll_interval == 60.0
    assert config.delivery_mode is DeliveryMode.IMMEDIATE
    assert config.poll_on_connect is False


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CITYBIKES_POLL_INTERVAL", "60")

    config = CityBikesConfig.from_env(poll_interval=15.0)

    assert config.poll_interval == 15.0


def test_from_env_rejects_bad_number(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CITYBIKES_POLL_INTERVAL", "soon")

    with pytest.raises(CityBikesConfigError):
        CityBikesConfig.from_env()
