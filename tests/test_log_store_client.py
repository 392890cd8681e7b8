"""
Tests for the log store client — retry/error policy, paging, profile lookup
and row → DataFrame conversion. No network: requests.get is monkeypatched.
"""
import pandas as pd
import pytest
import requests


class _FakeResponse:
    def __init__(self, status_code: int = 200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else []

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


@pytest.fixture
def store(monkeypatch):
    """Configured client with sleeps disabled; returns the list of GET calls."""
    import src.log_store_client as client
    monkeypatch.setattr(client, "SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setattr(client, "SUPABASE_SERVICE_KEY", "service-key")
    monkeypatch.setattr(client.time, "sleep", lambda s: None)
    return client


def _queue(monkeypatch, responses: list):
    """Make requests.get return/raise the queued items in order."""
    calls = []

    def fake_get(url, headers=None, params=None, timeout=None):
        calls.append({"url": url, "headers": headers, "params": dict(params or {})})
        item = responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    monkeypatch.setattr(requests, "get", fake_get)
    return calls


class TestRequestPolicy:

    def test_retries_server_errors(self, store, monkeypatch):
        calls = _queue(monkeypatch, [_FakeResponse(503), _FakeResponse(200, [{"weight_unit": "kg"}])])
        assert store.fetch_weight_unit("u1") == "kg"
        assert len(calls) == 2

    def test_retries_rate_limit_then_gives_up(self, store, monkeypatch):
        calls = _queue(monkeypatch, [_FakeResponse(429)] * 3)
        with pytest.raises(store.LogStoreError, match="429"):
            store.fetch_weight_unit("u1")
        assert len(calls) == store.MAX_RETRIES

    def test_client_error_not_retried(self, store, monkeypatch):
        calls = _queue(monkeypatch, [_FakeResponse(401)])
        with pytest.raises(store.LogStoreError, match="401"):
            store.fetch_workout_entries("u1", pd.Timestamp("2026-03-01", tz="UTC"))
        assert len(calls) == 1

    def test_timeouts_become_log_store_error(self, store, monkeypatch):
        _queue(monkeypatch, [requests.exceptions.Timeout("slow")] * 3)
        with pytest.raises(store.LogStoreError, match="unreachable") as exc:
            store.fetch_run_activities("u1", pd.Timestamp("2026-03-01", tz="UTC"))
        assert isinstance(exc.value.__cause__, requests.exceptions.Timeout)

    def test_connection_error_recovers(self, store, monkeypatch):
        calls = _queue(monkeypatch, [requests.exceptions.ConnectionError("down"), _FakeResponse(200, [])])
        assert store.fetch_run_activities("u1", pd.Timestamp("2026-03-01", tz="UTC")) == []
        assert len(calls) == 2

    def test_invalid_json(self, store, monkeypatch):
        _queue(monkeypatch, [_FakeResponse(200, ValueError("bad json"))])
        with pytest.raises(store.LogStoreError, match="invalid JSON"):
            store.fetch_weight_unit("u1")

    def test_not_configured(self, monkeypatch):
        import src.log_store_client as client
        monkeypatch.setattr(client, "SUPABASE_URL", "")
        with pytest.raises(client.LogStoreError, match="not configured"):
            client.fetch_weight_unit("u1")

    def test_auth_headers_and_filters(self, store, monkeypatch):
        calls = _queue(monkeypatch, [_FakeResponse(200, [])])
        store.fetch_workout_entries("u1", pd.Timestamp("2026-03-01 12:00", tz="UTC"))
        call = calls[0]
        assert call["url"] == "https://example.supabase.co/rest/v1/workouts"
        assert call["headers"]["apikey"] == "service-key"
        assert call["headers"]["Authorization"] == "Bearer service-key"
        assert call["params"]["user_id"] == "eq.u1"
        assert call["params"]["created_at"] == "gte.2026-03-01T12:00:00+00:00"


class TestPaging:

    def test_reads_until_short_page(self, store, monkeypatch):
        monkeypatch.setattr(store, "LOG_STORE_PAGE_SIZE", 2)
        calls = _queue(monkeypatch, [
            _FakeResponse(200, [{"id": 1}, {"id": 2}]),
            _FakeResponse(200, [{"id": 3}]),
        ])
        rows = store.fetch_workout_entries("u1", pd.Timestamp("2026-03-01", tz="UTC"))
        assert [r["id"] for r in rows] == [1, 2, 3]
        assert [c["params"]["offset"] for c in calls] == [0, 2]
        assert all(c["params"]["limit"] == 2 for c in calls)


class TestFetchWeightUnit:

    def test_unknown_user(self, store, monkeypatch):
        _queue(monkeypatch, [_FakeResponse(200, [])])
        with pytest.raises(store.LogStoreError, match="not found"):
            store.fetch_weight_unit("ghost")

    def test_missing_unit_defaults_to_kg(self, store, monkeypatch):
        _queue(monkeypatch, [_FakeResponse(200, [{"weight_unit": None}])])
        assert store.fetch_weight_unit("u1") == "kg"

    def test_unit_normalised(self, store, monkeypatch):
        _queue(monkeypatch, [_FakeResponse(200, [{"weight_unit": " LBS "}])])
        assert store.fetch_weight_unit("u1") == "lbs"


class TestEntriesToDataframe:

    def test_conversion(self):
        from src.log_store_client import entries_to_dataframe
        df = entries_to_dataframe([
            {"user_id": "u1", "exercise_name": " Bench Press ", "muscle_group": "",
             "sets": "3", "reps": None, "weight": "abc", "duration": 45, "notes": "ok",
             "created_at": "2026-03-03T10:00:00.123456+00:00"},
            {"user_id": "u1", "exercise_name": "Squat", "muscle_group": "Legs",
             "sets": 5, "reps": 5, "weight": 100, "duration": None, "notes": None,
             "created_at": "2026-03-01T10:00:00+00:00"},
            {"user_id": "u1", "exercise_name": "Broken", "muscle_group": "Legs",
             "sets": 1, "reps": 1, "weight": 1, "created_at": "not a date"},
        ])
        assert len(df) == 2
        assert list(df["exercise_name"]) == ["Squat", "Bench Press"]  # sorted by time
        bench = df.iloc[1]
        assert bench["muscle_group"] is None
        assert bench["sets"] == 3.0
        assert pd.isna(bench["reps"])
        assert pd.isna(bench["weight"])
        assert bench["recorded_at"] == pd.Timestamp("2026-03-03 10:00:00.123456", tz="UTC")

    def test_text_columns_keep_none_for_string_dtype(self):
        from src.log_store_client import _text
        cleaned = _text(pd.Series([" Squat ", "", None, "Row"], dtype="string"))
        assert cleaned.dtype == object
        assert list(cleaned) == ["Squat", None, None, "Row"]

    def test_empty(self):
        from src.log_store_client import entries_to_dataframe, ENTRY_COLUMNS
        df = entries_to_dataframe([])
        assert df.empty
        assert list(df.columns) == ENTRY_COLUMNS


class TestActivitiesToDataframe:

    def test_conversion(self):
        from src.log_store_client import activities_to_dataframe
        df = activities_to_dataframe([
            {"user_id": "u1", "type": None, "start_date": "2026-03-10T07:00:00Z",
             "distance": "5000.5", "moving_time": 1500, "total_elevation_gain": None, "name": "Easy"},
        ])
        run = df.iloc[0]
        assert run["type"] is None
        assert run["distance"] == 5000.5
        assert pd.isna(run["total_elevation_gain"])
        assert run["start_date"] == pd.Timestamp("2026-03-10 07:00", tz="UTC")

    def test_missing_columns_filled(self):
        from src.log_store_client import activities_to_dataframe, ACTIVITY_COLUMNS
        df = activities_to_dataframe([{"start_date": "2026-03-10T07:00:00Z", "distance": 1000}])
        assert list(df.columns) == ACTIVITY_COLUMNS
        assert pd.isna(df.iloc[0]["moving_time"])
