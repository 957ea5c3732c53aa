"""
Loading raw demand and temperature data.

Each loader parses row by row: a row that cannot be parsed raises
MalformedRecordError, which the loader catches, counts and logs before moving
on. Structural problems (missing file, missing column) propagate.
"""

import datetime as dt
import logging
import math
import numbers
import pathlib
import re

import pandas as pd
import requests

from .errors import MalformedRecordError
from .records import IngestResult, Reading, TemperatureRecord

logger = logging.getLogger(__name__)

MISSING_TEMPERATURE = -99.0
OPEN_METEO_ARCHIVE_URL = "https://archive-api.open-meteo.com/v1/archive"
_UNIT_SUFFIX = re.compile(r"\s*(mw|kw)$", re.IGNORECASE)
_FIELD_SEP = re.compile(r"[\s,;]+")


def _to_float(raw):
    if isinstance(raw, str):
        raw = _UNIT_SUFFIX.sub("", raw.strip()).replace(",", "")
    return float(raw)


def parse_reading(raw_timestamp, raw_demand) -> Reading:
    # pandas would read a bare number as nanoseconds since 1970
    if isinstance(raw_timestamp, numbers.Number):
        raise MalformedRecordError(f"numeric timestamp {raw_timestamp!r}", raw_timestamp)
    try:
        timestamp = pd.Timestamp(raw_timestamp)
    except (TypeError, ValueError) as exc:
        raise MalformedRecordError(f"unparseable timestamp {raw_timestamp!r}", raw_timestamp) from exc
    if pd.isna(timestamp):
        raise MalformedRecordError("missing timestamp", raw_timestamp)
    try:
        demand = _to_float(raw_demand)
    except (TypeError, ValueError) as exc:
        raise MalformedRecordError(f"unparseable demand {raw_demand!r}", raw_demand) from exc
    if math.isnan(demand) or math.isinf(demand) or demand < 0:
        raise MalformedRecordError(f"invalid demand {raw_demand!r}", raw_demand)
    return Reading(timestamp=timestamp.to_pydatetime(), demand=demand)


def readings_from_frame(frame: pd.DataFrame, timestamp_column="timestamp", demand_column="demand") -> IngestResult:
    missing = [c for c in (timestamp_column, demand_column) if c not in frame.columns]
    if missing:
        raise ValueError(f"demand data is missing column(s) {missing}; available: {list(frame.columns)}")

    readings, dropped = [], 0
    for raw_ts, raw_demand in zip(frame[timestamp_column], frame[demand_column]):
        try:
            readings.append(parse_reading(raw_ts, raw_demand))
        except MalformedRecordError as exc:
            dropped += 1
            logger.debug("Dropping demand row: %s", exc)
    if dropped:
        logger.warning("Dropped %d malformed demand row(s) of %d", dropped, len(frame))
    return IngestResult(records=tuple(readings), dropped=dropped)


def load_demand_csv(path, timestamp_column="timestamp", demand_column="demand") -> IngestResult:
    frame = pd.read_csv(path)
    logger.info("Read %d demand row(s) from %s", len(frame), path)
    return readings_from_frame(frame, timestamp_column, demand_column)


def parse_temperature_row(month, day, year, temperature) -> TemperatureRecord:
    try:
        date = dt.date(int(float(year)), int(float(month)), int(float(day)))
    except (TypeError, ValueError) as exc:
        raise MalformedRecordError(f"invalid date {month}/{day}/{year}", (month, day, year)) from exc
    try:
        value = float(temperature)
    except (TypeError, ValueError) as exc:
        raise MalformedRecordError(f"unparseable temperature {temperature!r}", temperature) from exc
    if math.isnan(value) or value == MISSING_TEMPERATURE:
        raise MalformedRecordError(f"{date}: temperature missing", temperature)
    return TemperatureRecord(date=date, temperature=value)


def temperatures_from_rows(rows) -> IngestResult:
    records, dropped = [], 0
    for row in rows:
        try:
            if len(row) < 4:
                raise MalformedRecordError(f"expected month, day, year, temperature; got {row!r}", row)
            records.append(parse_temperature_row(*row[:4]))
        except MalformedRecordError as exc:
            dropped += 1
            logger.debug("Dropping temperature row: %s", exc)
    if dropped:
        logger.warning("Dropped %d malformed temperature row(s)", dropped)
    return IngestResult(records=tuple(records), dropped=dropped)


def load_temperature_text(path) -> IngestResult:
    """Plain-text `month day year temperature` rows; -99 marks a missing day."""
    lines = pathlib.Path(path).read_text().splitlines()
    rows = [_FIELD_SEP.split(line.strip()) for line in lines if line.strip() and not line.lstrip().startswith("#")]
    result = temperatures_from_rows(rows)
    logger.info("Read %d temperature day(s) from %s", len(result), path)
    return result


def fetch_daily_temperature(latitude, longitude, start_date, end_date, timeout=30) -> IngestResult:
    """Daily mean 2 m temperature (F) from the Open-Meteo historical archive."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "start_date": pd.Timestamp(start_date).strftime("%Y-%m-%d"),
        "end_date": pd.Timestamp(end_date).strftime("%Y-%m-%d"),
        "daily": "temperature_2m_mean",
        "temperature_unit": "fahrenheit",
        "timezone": "auto",
    }
    r = requests.get(OPEN_METEO_ARCHIVE_URL, params=params, timeout=timeout)
    if r.status_code != 200:
        raise ValueError(f"Open-Meteo archive request failed with HTTP {r.status_code}")
    daily = r.json()["daily"]
    rows = []
    for day, value in zip(daily["time"], daily["temperature_2m_mean"]):
        d = pd.Timestamp(day)
        rows.append((d.month, d.day, d.year, value))
    return temperatures_from_rows(rows)
