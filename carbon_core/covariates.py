# MIT License
"""External climate, solar and soil covariates for a coordinate.

Three public services are queried concurrently:

- Open-Meteo daily max/min temperature and precipitation for the
  trailing window, reduced to a mean temperature and a precipitation sum;
- NASA POWER daily all-sky surface irradiance (kWh/m²/day), averaged;
- ISRIC SoilGrids organic carbon density at 0–5 cm (point estimate).

Every lookup has its own hard timeout.  A lookup that times out, gets a
non-2xx status or returns an unexpected payload resolves to ``None``;
the gatherer never raises because of a remote source.
"""
from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple

import httpx

from .config import CovariateConfig
from .params import CovariateBundle

logger = logging.getLogger(__name__)

# NASA POWER marks missing days with this value
POWER_FILL_VALUE = -999.0

_SOURCE_ERRORS = (
    asyncio.TimeoutError, httpx.HTTPError, ValueError, TypeError, KeyError, IndexError, AttributeError,
)


async def _get_json(client: httpx.AsyncClient, url: str, params: dict, timeout_s: float) -> Any:
    resp = await asyncio.wait_for(client.get(url, params=params, timeout=timeout_s), timeout_s)
    resp.raise_for_status()
    return resp.json()


def _as_float(value) -> Optional[float]:
    try:
        val = float(value)
    except (TypeError, ValueError):
        return None
    return val if math.isfinite(val) else None


def _mean(values) -> Optional[float]:
    # unparsable and non-finite entries are skipped individually
    vals = [v for v in (_as_float(x) for x in values) if v is not None]
    if not vals:
        return None
    return sum(vals) / len(vals)


def parse_climate(payload: dict) -> Optional[Tuple[float, float]]:
    """Reduce an Open-Meteo daily payload to (mean temperature, total precipitation)."""
    daily = payload.get("daily") or {}
    days = daily.get("time") or []
    if not days:
        return None
    tmax = daily.get("temperature_2m_max") or []
    tmin = daily.get("temperature_2m_min") or []
    precip = daily.get("precipitation_sum") or []
    sum_t = 0.0
    sum_p = 0.0
    for i in range(len(days)):
        hi = tmax[i] if i < len(tmax) and tmax[i] is not None else 0.0
        lo = tmin[i] if i < len(tmin) and tmin[i] is not None else 0.0
        sum_t += (float(hi) + float(lo)) / 2.0
        sum_p += float(precip[i]) if i < len(precip) and precip[i] is not None else 0.0
    avg_t = sum_t / len(days)
    if not (math.isfinite(avg_t) and math.isfinite(sum_p)):
        return None
    return avg_t, sum_p


def parse_solar(payload: dict) -> Optional[float]:
    """Average a NASA POWER ALLSKY_SFC_SW_DWN series, ignoring fill values."""
    series = payload["properties"]["parameter"]["ALLSKY_SFC_SW_DWN"]
    return _mean(v for v in map(_as_float, series.values()) if v is not None and v != POWER_FILL_VALUE)


def parse_soil_carbon(payload: dict) -> Optional[float]:
    layers = payload["properties"]["layers"]
    if not isinstance(layers, list) or not layers:
        return None
    mean = layers[0]["depths"][0]["values"].get("mean")
    if mean is None:
        return None
    val = float(mean)
    return val if math.isfinite(val) else None


async def fetch_climate(client: httpx.AsyncClient, lat: float, lon: float,
                        cfg: CovariateConfig) -> Optional[Tuple[float, float]]:
    params = {
        "latitude": lat,
        "longitude": lon,
        "daily": "temperature_2m_max,temperature_2m_min,precipitation_sum",
        "past_days": cfg.window_days,
        "forecast_days": 0,
    }
    try:
        return parse_climate(await _get_json(client, cfg.climate_url, params, cfg.timeout_s))
    except _SOURCE_ERRORS as exc:
        logger.warning("climate lookup unavailable for (%s, %s): %r", lat, lon, exc)
        return None


async def fetch_solar(client: httpx.AsyncClient, lat: float, lon: float,
                      cfg: CovariateConfig, today: Optional[datetime] = None) -> Optional[float]:
    end = today or datetime.now(timezone.utc)
    start = end - timedelta(days=cfg.window_days)
    params = {
        "parameters": "ALLSKY_SFC_SW_DWN",
        "community": "AG",
        "latitude": lat,
        "longitude": lon,
        "start": start.strftime("%Y%m%d"),
        "end": end.strftime("%Y%m%d"),
        "format": "JSON",
    }
    try:
        return parse_solar(await _get_json(client, cfg.solar_url, params, cfg.timeout_s))
    except _SOURCE_ERRORS as exc:
        logger.warning("solar lookup unavailable for (%s, %s): %r", lat, lon, exc)
        return None


async def fetch_soil_organic_carbon(client: httpx.AsyncClient, lat: float, lon: float,
                                    cfg: CovariateConfig) -> Optional[float]:
    params = {"lon": lon, "lat": lat, "property": "ocd", "depth": "0-5cm"}
    try:
        return parse_soil_carbon(await _get_json(client, cfg.soil_url, params, cfg.timeout_s))
    except _SOURCE_ERRORS as exc:
        logger.warning("soil carbon lookup unavailable for (%s, %s): %r", lat, lon, exc)
        return None


async def gather_covariates(
    lat: Optional[float],
    lon: Optional[float],
    cfg: Optional[CovariateConfig] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CovariateBundle:
    """Fetch all covariates for a coordinate concurrently.

    Returns an empty bundle without any network traffic when either
    coordinate is missing.  ``transport`` is passed to the underlying
    :class:`httpx.AsyncClient` (tests use :class:`httpx.MockTransport`).
    """
    if lat is None or lon is None:
        return CovariateBundle()
    cfg = cfg or CovariateConfig()

    async with httpx.AsyncClient(
        headers={"User-Agent": cfg.user_agent},
        timeout=cfg.timeout_s,
        transport=transport,
    ) as client:
        climate, solar, soc = await asyncio.gather(
            fetch_climate(client, lat, lon, cfg),
            fetch_solar(client, lat, lon, cfg),
            fetch_soil_organic_carbon(client, lat, lon, cfg),
        )

    bundle = CovariateBundle(
        avg_temp_c=climate[0] if climate else None,
        total_precip_mm=climate[1] if climate else None,
        solar_kwh_m2_day=solar,
        soil_organic_carbon=soc,
    )
    missing = bundle.missing()
    if missing:
        logger.info("covariates for (%s, %s) missing: %s", lat, lon, ", ".join(missing))
    return bundle


def gather_covariates_sync(lat: Optional[float], lon: Optional[float],
                           cfg: Optional[CovariateConfig] = None) -> CovariateBundle:
    """Blocking wrapper for scripts and the dashboard."""
    return asyncio.run(gather_covariates(lat, lon, cfg))
