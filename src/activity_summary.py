"""
Activity Summary — Orchestrator

Builds the per-user summary consumed by the AI coach and the dashboards:

1. Resolve the period (start, midpoint, current/previous ISO week)
2. Muscle group volume
3. Progression of the most frequently trained exercises
4. Run stats and pace trend
5. Training days, average session time and week-over-week consistency

`build_activity_summary` is pure (rows + now → dict). `get_user_activity_summary`
adds the log store reads; if any of them fails the whole summary fails, a
partially filled summary is never returned.
"""
from datetime import datetime

import pandas as pd

from src.analytics import (
    resolve_period,
    muscle_group_summary,
    exercise_progression,
    workout_days,
    workout_session_stats,
)
from src.run_analytics import run_summary
from src.config import DEFAULT_PERIOD_DAYS, DEFAULT_WEIGHT_UNIT
from src.log_store_client import (
    fetch_weight_unit,
    fetch_workout_entries,
    fetch_run_activities,
    entries_to_dataframe,
    activities_to_dataframe,
)


def build_activity_summary(
    entries: pd.DataFrame,
    runs: pd.DataFrame,
    period_days: float = DEFAULT_PERIOD_DAYS,
    now: datetime = None,
    weight_unit: str = DEFAULT_WEIGHT_UNIT,
) -> dict:
    """
    Assemble the activity summary from strength entries and run activities.

    Rows older than the period may be passed in; every stage applies its own
    period filter. The weekly counts use calendar weeks and are independent of
    `period_days`.
    """
    period = resolve_period(period_days, now)
    weight_unit = weight_unit or DEFAULT_WEIGHT_UNIT

    sessions = workout_session_stats(entries, period["period_start"])
    run_stats = run_summary(runs, period["period_start"], period["mid_period"])

    return {
        "total_workout_sessions": sessions["total_workout_sessions"],
        "total_run_sessions": run_stats["total_run_sessions"],
        "avg_workout_duration_minutes": sessions["avg_workout_duration_minutes"],
        "avg_run_distance_meters": run_stats["avg_run_distance_meters"],
        "avg_run_duration_seconds": run_stats["avg_run_duration_seconds"],
        "muscle_group_summary": muscle_group_summary(entries, period["period_start"]),
        "dynamic_exercise_progression": exercise_progression(
            entries, period["period_start"], weight_unit=weight_unit
        ),
        "last_3_runs": run_stats["last_3_runs"],
        "recent_run_pace_trend": run_stats["recent_run_pace_trend"],
        "workout_days_this_week": workout_days(
            entries, period["current_week_start"], period["current_week_start"] + pd.Timedelta(days=7)
        ),
        "workout_days_last_week": workout_days(
            entries, period["last_week_start"], period["current_week_start"]
        ),
    }


def get_user_activity_summary(
    user_id: str,
    period_days: float = DEFAULT_PERIOD_DAYS,
    now: datetime = None,
) -> dict:
    """
    Fetch a user's rows from the log store and build their summary.

    Raises LogStoreError when the store is unreachable or the user is unknown.
    """
    period = resolve_period(period_days, now)
    weight_unit = fetch_weight_unit(user_id)

    # Last week's consistency count needs rows from before a short period
    entries_since = min(period["period_start"], period["last_week_start"])
    entries = entries_to_dataframe(fetch_workout_entries(user_id, entries_since))
    runs = activities_to_dataframe(fetch_run_activities(user_id, period["period_start"]))

    return build_activity_summary(
        entries, runs, period_days, now=period["now"], weight_unit=weight_unit
    )
