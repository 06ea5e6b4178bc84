"""Data source configuration for pycitybikes."""

from __future__ import annotations

import dataclasses
import math
import os
from collections.abc import Mapping
from typing import Any

from pycitybikes._constants import STATION_INFORMATION_URL, STATION_STATUS_URL
from pycitybikes.delivery import DeliveryMode
from pycitybikes.exceptions import CityBikesConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env: Mapping[str, str], key: str) -> float | None:
    value = env.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise CityBikesConfigError(f"{key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class CityBikesConfig:
    """Data source configuration.

    Parameters
    ----------
    status_url : str
        GBFS ``station_status.json`` endpoint, polled every interval.
    station_information_url : str
        GBFS ``station_information.json`` endpoint, fetched once to build
        the station catalog.
    poll_interval : float
        Seconds between two status polls. Must be finite and greater than zero.
    delivery_mode : DeliveryMode
        ``SMOOTHED`` spreads the observations of one poll evenly over the
        poll interval; ``IMMEDIATE`` emits them as soon as they are detected.
    poll_on_connect : bool
        Run the first poll right after connecting instead of waiting a
        full interval. The first poll establishes the baseline.
    request_timeout : float
        Total timeout in seconds for one feed request.
    """

    status_url: str = STATION_STATUS_URL
    station_information_url: str = STATION_INFORMATION_URL
    poll_interval: float = 300.0
    delivery_mode: DeliveryMode = DeliveryMode.SMOOTHED
    poll_on_connect: bool = True
    request_timeout: float = 30.0

    def __post_init__(self) -> None:
        if not math.isfinite(self.poll_interval) or self.poll_interval <= 0:
            raise CityBikesConfigError(f"poll_interval must be a finite number > 0, got {self.poll_interval}")
        if not math.isfinite(self.request_timeout) or self.request_timeout <= 0:
            raise CityBikesConfigError(f"request_timeout must be a finite number > 0, got {self.request_timeout}")
        try:
            mode = DeliveryMode(self.delivery_mode)
        except ValueError as exc:
            raise CityBikesConfigError(f"Unknown delivery mode: {self.delivery_mode!r}") from exc
        # Accept plain strings for the mode and store the enum member.
        object.__setattr__(self, "delivery_mode", mode)

    @property
    def smooth_updates(self) -> bool:
        """Whether observations are spread over the poll interval."""
        return self.delivery_mode == DeliveryMode.SMOOTHED

    @classmethod
    def from_env(cls, **overrides: Any) -> CityBikesConfig:
        """Create configuration from environment variables.

        Reads the optional ``CITYBIKES_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        CityBikesConfig
            Populated configuration.

        Raises
        ------
        CityBikesConfigError
            If a numeric variable cannot be parsed or a value is out of range.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "CITYBIKES_STATUS_URL": "status_url",
            "CITYBIKES_STATION_INFORMATION_URL": "station_information_url",
            "CITYBIKES_DELIVERY_MODE": "delivery_mode",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        interval = _env_float(env, "CITYBIKES_POLL_INTERVAL")
        if interval is not None and "poll_interval" not in overrides:
            config_kwargs["poll_interval"] = interval

        timeout = _env_float(env, "CITYBIKES_REQUEST_TIMEOUT")
        if timeout is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = timeout

        if "poll_on_connect" not in overrides:
            config_kwargs["poll_on_connect"] = _env_bool(env.get("CITYBIKES_POLL_ON_CONNECT"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
