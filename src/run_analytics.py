"""
Activity Summary — Run Analytics

Aggregates over the user's runs in the period, the list of most recent runs
and a pace trend comparing the recent half of the period with the older half.
Pace is in minutes per kilometer, so a lower pace is faster.
"""
import math

import numpy as np
import pandas as pd

from src.analytics import round_half_up, to_utc, window
from src.config import (
    NUM_RECENT_RUNS,
    DEFAULT_ACTIVITY_TYPE,
    PACE_NO_DATA,
    PACE_NO_RECENT,
    PACE_NO_OLDER,
    PACE_FASTER,
    PACE_SLOWER,
    PACE_CONSISTENT,
    PACE_NOT_AVAILABLE,
    DATE_FORMAT,
)


def format_pace(pace_min_km) -> str:
    """5.5 → '05:30'. Seconds are truncated, not rounded. Missing → 'N/A'."""
    if pace_min_km is None or pd.isna(pace_min_km) or pace_min_km <= 0:
        return PACE_NOT_AVAILABLE
    # round away float noise (4.999999… min/km) before truncating
    total_seconds = math.floor(round(float(pace_min_km) * 60, 6))
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def add_pace_column(df: pd.DataFrame) -> pd.DataFrame:
    """Clamp distance/time/elevation and add `pace_min_km` (NaN when undefined)."""
    df = df.copy()
    for col in ("distance", "moving_time", "total_elevation_gain"):
        df[col] = pd.to_numeric(df[col], errors="coerce").clip(lower=0)
    valid = (df["distance"] > 0) & (df["moving_time"] > 0)
    df["pace_min_km"] = np.where(
        valid,
        (df["moving_time"] / 60.0) / (df["distance"] / 1000.0),
        np.nan,
    )
    return df


def runs_in_period(df: pd.DataFrame, period_start) -> pd.DataFrame:
    """Run activities started in the period. A missing type counts as a run."""
    runs = window(df, "start_date", period_start)
    if runs.empty:
        return runs
    runs = runs.copy()
    runs["type"] = runs["type"].where(runs["type"].notna(), DEFAULT_ACTIVITY_TYPE)
    runs = runs[runs["type"] == DEFAULT_ACTIVITY_TYPE]
    if runs.empty:
        return runs
    return add_pace_column(runs)


def pace_trend(runs: pd.DataFrame, mid_period) -> str:
    """Mean pace of the recent half vs. the older half of the period."""
    if runs.empty or "pace_min_km" not in runs.columns:
        return PACE_NO_DATA
    paced = runs[runs["pace_min_km"].notna()]
    recent_mask = paced["start_date"] >= to_utc(mid_period)
    recent = paced.loc[recent_mask, "pace_min_km"]
    older = paced.loc[~recent_mask, "pace_min_km"]

    if recent.empty and older.empty:
        return PACE_NO_DATA
    if recent.empty:
        return PACE_NO_RECENT
    if older.empty:
        return PACE_NO_OLDER
    recent_avg, older_avg = recent.mean(), older.mean()
    if math.isclose(recent_avg, older_avg, rel_tol=0, abs_tol=1e-9):
        return PACE_CONSISTENT
    return PACE_FASTER if recent_avg < older_avg else PACE_SLOWER


def recent_runs(runs: pd.DataFrame, limit: int = NUM_RECENT_RUNS) -> list[dict]:
    """Most recent runs, newest first, formatted for display."""
    if runs.empty:
        return []
    latest = runs.sort_values("start_date", ascending=False, kind="mergesort").head(limit)
    rows = []
    for _, run in latest.iterrows():
        name = run["name"]
        rows.append({
            "run_date": run["start_date"].strftime(DATE_FORMAT),
            "name": None if name is None or pd.isna(name) else name,
            "distance_km": round_half_up((0 if pd.isna(run["distance"]) else run["distance"]) / 1000.0, 2),
            "duration_min": round_half_up((0 if pd.isna(run["moving_time"]) else run["moving_time"]) / 60.0, 1),
            "avg_pace_min_km": format_pace(run["pace_min_km"]),
            "elevation_gain_m": round_half_up(run["total_elevation_gain"], 0),
            "run_type": run["type"],
        })
    return rows


def run_summary(df: pd.DataFrame, period_start, mid_period, limit: int = NUM_RECENT_RUNS) -> dict:
    """Run counts and averages, the latest runs and the pace trend for a period."""
    runs = runs_in_period(df, period_start)
    if runs.empty:
        return {
            "total_run_sessions": 0,
            "avg_run_distance_meters": 0,
            "avg_run_duration_seconds": 0,
            "last_3_runs": [],
            "recent_run_pace_trend": PACE_NO_DATA,
        }
    return {
        "total_run_sessions": int(len(runs)),
        "avg_run_distance_meters": round_half_up(runs["distance"].mean(), 0),
        "avg_run_duration_seconds": round_half_up(runs["moving_time"].mean(), 0),
        "last_3_runs": recent_runs(runs, limit),
        "recent_run_pace_trend": pace_trend(runs, mid_period),
    }
