"""
Activity Summary — Log Store Client

Read-only access to the three inputs of a summary: strength log entries,
endurance activities and the user's weight-unit preference. Rows come from a
PostgREST endpoint (Supabase) and are converted to flat pandas DataFrames.
"""
import time
from datetime import datetime

import pandas as pd
import requests

from src.config import (
    SUPABASE_URL,
    SUPABASE_SERVICE_KEY,
    LOG_STORE_TIMEOUT,
    LOG_STORE_PAGE_SIZE,
    WORKOUTS_TABLE,
    ACTIVITIES_TABLE,
    PROFILES_TABLE,
    DEFAULT_WEIGHT_UNIT,
    WEIGHT_UNITS,
)

MAX_RETRIES = 3
RETRY_BACKOFF = 2  # exponential backoff multiplier

ENTRY_COLUMNS = [
    "user_id", "exercise_name", "muscle_group", "sets", "reps", "weight",
    "duration", "notes", "recorded_at",
]
ACTIVITY_COLUMNS = [
    "user_id", "type", "start_date", "distance", "moving_time",
    "total_elevation_gain", "name",
]


class LogStoreError(RuntimeError):
    """The log store could not provide the rows a summary needs."""


def _headers() -> dict:
    return {
        "accept": "application/json",
        "apikey": SUPABASE_SERVICE_KEY,
        "Authorization": f"Bearer {SUPABASE_SERVICE_KEY}",
    }


def _get(table: str, params: dict) -> list[dict]:
    """GET a table from the REST endpoint with retry on 429/5xx/timeouts."""
    if not SUPABASE_URL or not SUPABASE_SERVICE_KEY:
        raise LogStoreError("Log store is not configured (SUPABASE_URL / SUPABASE_SERVICE_KEY)")

    url = f"{SUPABASE_URL}/rest/v1/{table}"
    for attempt in range(1, MAX_RETRIES + 1):
        try:
            r = requests.get(url, headers=_headers(), params=params, timeout=LOG_STORE_TIMEOUT)
            if r.status_code == 429 or r.status_code >= 500:
                if attempt < MAX_RETRIES:
                    wait = RETRY_BACKOFF ** attempt
                    print(f"  ⏳ Log store {r.status_code} on {table}, retrying in {wait}s (attempt {attempt}/{MAX_RETRIES})")
                    time.sleep(wait)
                    continue
            r.raise_for_status()
            return r.json()
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            if attempt < MAX_RETRIES:
                print(f"  ⏳ Log store unreachable ({type(e).__name__}), retrying (attempt {attempt}/{MAX_RETRIES})")
                time.sleep(RETRY_BACKOFF ** attempt)
            else:
                raise LogStoreError(f"Log store unreachable while reading {table}: {e}") from e
        except requests.exceptions.HTTPError as e:
            raise LogStoreError(f"Log store returned {r.status_code} while reading {table}") from e
        except ValueError as e:
            raise LogStoreError(f"Log store returned invalid JSON for {table}") from e
    raise LogStoreError(f"Log store failed after {MAX_RETRIES} attempts reading {table}")


def _get_all(table: str, params: dict, order: str) -> list[dict]:
    """Page through a table with limit/offset until a short page comes back."""
    rows = []
    offset = 0
    while True:
        page = _get(table, {**params, "order": order, "limit": LOG_STORE_PAGE_SIZE, "offset": offset})
        rows.extend(page)
        if len(page) < LOG_STORE_PAGE_SIZE:
            break
        offset += LOG_STORE_PAGE_SIZE
    return rows


def _iso(ts: datetime) -> str:
    return pd.Timestamp(ts).isoformat()


# ═════════════════════════════════════════════════════════════════════
# QUERIES
# ═════════════════════════════════════════════════════════════════════

def fetch_weight_unit(user_id: str) -> str:
    """
    Weight unit from the user's profile.

    A missing profile means the user does not exist and fails the request;
    a profile without a (recognised) unit falls back to kg.
    """
    rows = _get(PROFILES_TABLE, {"id": f"eq.{user_id}", "select": "weight_unit", "limit": 1})
    if not rows:
        raise LogStoreError(f"User {user_id} not found in {PROFILES_TABLE}")
    unit = (rows[0].get("weight_unit") or "").strip().lower()
    return unit if unit in WEIGHT_UNITS else DEFAULT_WEIGHT_UNIT


def fetch_workout_entries(user_id: str, since: datetime) -> list[dict]:
    """Strength log rows for a user recorded at or after `since`."""
    return _get_all(
        WORKOUTS_TABLE,
        {
            "user_id": f"eq.{user_id}",
            "created_at": f"gte.{_iso(since)}",
            "select": "user_id,exercise_name,muscle_group,sets,reps,weight,duration,notes,created_at",
        },
        order="created_at.asc",
    )


def fetch_run_activities(user_id: str, since: datetime) -> list[dict]:
    """Endurance activity rows for a user started at or after `since`."""
    return _get_all(
        ACTIVITIES_TABLE,
        {
            "user_id": f"eq.{user_id}",
            "start_date": f"gte.{_iso(since)}",
            "select": "user_id,type,start_date,distance,moving_time,total_elevation_gain,name",
        },
        order="start_date.asc",
    )


# ═════════════════════════════════════════════════════════════════════
# ROWS → DATAFRAMES
# ═════════════════════════════════════════════════════════════════════

def _clean_text(value):
    """Stripped string, or None for missing/blank values."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    value = str(value).strip()
    return value or None


def _text(series: pd.Series) -> pd.Series:
    # built as object so None survives string-dtype inference
    return pd.Series([_clean_text(v) for v in series], index=series.index, dtype=object)


def entries_to_dataframe(rows: list[dict]) -> pd.DataFrame:
    """
    Convert raw `workouts` rows to the strength entries DataFrame.
    One row per logged entry; `created_at` becomes `recorded_at` (UTC).
    Unparseable numbers become NaN and rows without a timestamp are dropped.
    """
    df = pd.DataFrame(rows)
    if "created_at" in df.columns:
        df = df.rename(columns={"created_at": "recorded_at"})
    for col in ENTRY_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df = df[ENTRY_COLUMNS].copy()
    if df.empty:
        df["recorded_at"] = pd.to_datetime(df["recorded_at"], utc=True)
        return df

    for col in ("sets", "reps", "weight", "duration"):
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    for col in ("exercise_name", "muscle_group", "notes"):
        df[col] = _text(df[col])
    df["recorded_at"] = pd.to_datetime(df["recorded_at"], utc=True, errors="coerce", format="ISO8601")
    df = df.dropna(subset=["recorded_at"])
    return df.sort_values("recorded_at", kind="mergesort").reset_index(drop=True)


def activities_to_dataframe(rows: list[dict]) -> pd.DataFrame:
    """Convert raw activity rows to the run activities DataFrame."""
    df = pd.DataFrame(rows)
    for col in ACTIVITY_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df = df[ACTIVITY_COLUMNS].copy()
    if df.empty:
        df["start_date"] = pd.to_datetime(df["start_date"], utc=True)
        return df

    for col in ("distance", "moving_time", "total_elevation_gain"):
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    df["type"] = _text(df["type"])
    df["start_date"] = pd.to_datetime(df["start_date"], utc=True, errors="coerce", format="ISO8601")
    df = df.dropna(subset=["start_date"])
    return df.sort_values("start_date", kind="mergesort").reset_index(drop=True)
