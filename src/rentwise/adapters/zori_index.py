# src/rentwise/adapters/zori_index.py
from __future__ import annotations

import threading
from pathlib import Path

import pandas as pd

from rentwise.adapters.config import config
from rentwise.adapters.logging_utils import get_logger
from rentwise.domain.errors import ProviderError
from rentwise.domain.places import split_location
from rentwise.domain.ports import ProviderReading
from rentwise.domain.situation import PropertySpec

logger = get_logger(__name__)

_ID_COLUMNS = ["RegionID", "SizeRank", "RegionName", "RegionType", "StateName", "State", "City", "Metro", "CountyName"]


def zori_to_long(wide: pd.DataFrame) -> pd.DataFrame:
    """
    Zillow publishes ZORI wide (one column per month). Convert to LONG:
        ['region', 'state', 'metro', 'date', 'value']
    dropping months without a value.
    """
    id_cols = [c for c in _ID_COLUMNS if c in wide.columns]
    if "RegionName" not in id_cols:
        raise ValueError("ZORI file is missing the RegionName column")

    long = wide.melt(id_vars=id_cols, var_name="date", value_name="value")
    long["date"] = pd.to_datetime(long["date"], errors="coerce")
    long["value"] = pd.to_numeric(long["value"], errors="coerce")
    long = long.dropna(subset=["date", "value"])

    state = long["State"] if "State" in long.columns else long.get("StateName")
    out = pd.DataFrame(
        {
            "region": long["RegionName"].astype(str),
            "state": state.astype(str).str.upper() if state is not None else "",
            "metro": long["Metro"].astype(str) if "Metro" in long.columns else "",
            "date": long["date"],
            "value": long["value"].astype(float),
        }
    )
    return out.sort_values(["region", "date"]).reset_index(drop=True)


class ZoriIndexProvider:
    """
    Commercial index: Zillow Observed Rent Index read from a CSV export.

    Metro files carry "Buffalo, NY" style region names, city files carry the
    bare city plus a State column; both are matched. The CSV is loaded once,
    on first use.
    """

    provider_id = "zori"

    def __init__(self, csv_path: str | Path | None = None, frame: pd.DataFrame | None = None) -> None:
        self.csv_path = Path(csv_path or config.ZORI_CSV_PATH)
        self._long = zori_to_long(frame) if frame is not None else None
        self._lock = threading.Lock()

    def _frame(self) -> pd.DataFrame | None:
        with self._lock:
            if self._long is None:
                if not self.csv_path.exists():
                    logger.warning("zori_csv_missing", extra={"context": {"path": str(self.csv_path)}})
                    return None
                try:
                    wide = pd.read_csv(self.csv_path)
                except (OSError, pd.errors.ParserError) as e:
                    raise ProviderError(self.provider_id, f"cannot read {self.csv_path}: {e}") from e
                self._long = zori_to_long(wide)
                logger.info(
                    "zori_loaded",
                    extra={"context": {"path": str(self.csv_path), "rows": int(len(self._long))}},
                )
            return self._long

    def fetch(self, location: str, property_spec: PropertySpec | None = None) -> ProviderReading | None:
        df = self._frame()
        if df is None or df.empty:
            return None

        city, state = split_location(location)
        region = df["region"].str.lower()
        city_l = city.lower()

        # metro style "City, ST" first, then bare city names
        mask = region.str.startswith(f"{city_l},") | (region == city_l)
        if state:
            exact_state = region.str.endswith(f", {state.lower()}") | (df["state"] == state)
            mask = mask & exact_state
        confidence = 0.85

        hits = df[mask]
        if hits.empty:
            # fall back to the surrounding metro for city files
            metro = df["metro"].astype(str).str.lower()
            fallback = metro.str.startswith(city_l)
            if state:
                # "Portland-Vancouver-Hillsboro, OR-WA" lists every state the metro spans
                metro_states = metro.str.contains(rf",\s*(?:[a-z]{2}-)*{state.lower()}(?:-[a-z]{2})*$", regex=True)
                fallback = fallback & ((df["state"] == state) | metro_states)
            hits = df[fallback]
            confidence = 0.7
        if hits.empty:
            return None

        latest = hits.sort_values("date").iloc[-1]
        return ProviderReading(
            value=round(float(latest["value"]), 2),
            confidence=confidence,
            detail=f"{latest['region']} {latest['date']:%Y-%m}",
        )
