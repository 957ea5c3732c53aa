import datetime as dt

import pandas as pd
import pytest

from grid_temperature import sources
from grid_temperature.errors import MalformedRecordError


def test_parse_reading():
    r = sources.parse_reading("2019-07-01 13:30", "1,234.5 MW")

    assert r.timestamp == dt.datetime(2019, 7, 1, 13, 30)
    assert r.demand == 1234.5


@pytest.mark.parametrize("ts, demand", [
    ("not a date", 100),
    (None, 100),
    (1561939200, 100),
    (12.5, 100),
    ("2019-07-01 00:00", "n/a"),
    ("2019-07-01 00:00", float("nan")),
    ("2019-07-01 00:00", -1),
])
def test_parse_reading_malformed(ts, demand):
    with pytest.raises(MalformedRecordError):
        sources.parse_reading(ts, demand)


def test_load_demand_csv_drops_malformed_rows(tmp_path, caplog):
    path = tmp_path / "demand.csv"
    pd.DataFrame({
        "Time": ["2019-07-01 00:00", "2019-07-01 00:30", "garbage", "2019-07-01 01:30"],
        "Load": [100.0, 110.0, 120.0, None],
        "Other": [1, 2, 3, 4],
    }).to_csv(path, index=False)

    with caplog.at_level("WARNING"):
        result = sources.load_demand_csv(path, timestamp_column="Time", demand_column="Load")

    assert [r.demand for r in result.records] == [100.0, 110.0]
    assert result.dropped == 2
    assert "Dropped 2 malformed demand row(s)" in caplog.text


def test_missing_demand_column_is_fatal():
    with pytest.raises(ValueError, match="missing column"):
        sources.readings_from_frame(pd.DataFrame({"timestamp": []}), demand_column="ND")


def test_load_temperature_text(tmp_path):
    path = tmp_path / "city.txt"
    path.write_text(
        "# month day year temperature\n"
        "  1   1   1995   44.0\n"
        "  1   2   1995  -99\n"
        "  2  30   1995   41.2\n"
        "1,3,1995,38.5\n"
        "\n"
    )

    result = sources.load_temperature_text(path)

    assert [(t.date, t.temperature) for t in result.records] == [
        (dt.date(1995, 1, 1), 44.0),
        (dt.date(1995, 1, 3), 38.5),
    ]
    assert result.dropped == 2


def test_short_temperature_row_is_dropped():
    result = sources.temperatures_from_rows([["1", "1", "1995"]])

    assert result.records == ()
    assert result.dropped == 1


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


def test_fetch_daily_temperature(monkeypatch):
    calls = {}

    def fake_get(url, params=None, timeout=None):
        calls["url"] = url
        calls["params"] = params
        return FakeResponse(200, {"daily": {
            "time": ["2019-07-01", "2019-07-02", "2019-07-03"],
            "temperature_2m_mean": [81.2, None, 77.0],
        }})

    monkeypatch.setattr(sources.requests, "get", fake_get)

    result = sources.fetch_daily_temperature(39.76, -84.19, "2019-07-01", dt.date(2019, 7, 3))

    assert calls["url"] == sources.OPEN_METEO_ARCHIVE_URL
    assert calls["params"]["temperature_unit"] == "fahrenheit"
    assert calls["params"]["end_date"] == "2019-07-03"
    assert [t.temperature for t in result.records] == [81.2, 77.0]
    assert result.dropped == 1


def test_fetch_daily_temperature_http_error(monkeypatch):
    monkeypatch.setattr(sources.requests, "get", lambda *a, **kw: FakeResponse(500))

    with pytest.raises(ValueError, match="HTTP 500"):
        sources.fetch_daily_temperature(0, 0, "2019-01-01", "2019-01-31")
