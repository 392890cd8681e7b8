"""
Activity Summary — Strength Analytics Engine

Period resolution, per muscle-group volume and per-exercise progression over a
user's strength log. Every function here is pure: DataFrame in, plain
dicts/lists out (JSON-native types only, never numpy scalars).

Volume of one log entry = sets × reps × weight, with missing reps counted as 1
and missing weight as 0. Negative values are clamped to zero so a single bad row
never poisons a total.
"""
import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

import pandas as pd

from src.config import (
    DEFAULT_WEIGHT_UNIT,
    TOP_N_EXERCISES,
    SESSIONS_FOR_PROGRESSION,
    TOP_EXERCISES_PER_MUSCLE_GROUP,
    CARDIO_MUSCLE_GROUP,
    TREND_INCREASING,
    TREND_DECREASING,
    TREND_STAGNANT,
    TREND_FIRST_SESSION,
    TREND_NA,
    DATE_FORMAT,
)

VOLUME_PRECISION = 9  # decimal places kept when comparing summed volumes


def round_half_up(value, ndigits: int = 0):
    """Round like a database NUMERIC does (0.5 away from zero). Missing → 0."""
    if value is None or pd.isna(value):
        return 0 if ndigits == 0 else 0.0
    quantum = Decimal(1).scaleb(-ndigits)
    rounded = Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if ndigits == 0 else float(rounded)


def to_utc(ts) -> pd.Timestamp:
    """Timestamp in UTC; naive values are taken to already be UTC."""
    ts = pd.Timestamp(ts)
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def window(df: pd.DataFrame, column: str, start, end=None) -> pd.DataFrame:
    """Rows with start <= df[column] (< end). Naive timestamps are read as UTC."""
    if df is None or df.empty:
        return pd.DataFrame(columns=df.columns if df is not None else [])
    out = df.copy()
    out[column] = pd.to_datetime(out[column], utc=True)
    mask = out[column] >= to_utc(start)
    if end is not None:
        mask &= out[column] < to_utc(end)
    return out[mask]


# ═══════════════════════════════════════════════════════════════════════
# 1. PERIOD RESOLVER
# ═══════════════════════════════════════════════════════════════════════

def resolve_period(period_days: float, now: datetime = None) -> dict:
    """
    Absolute boundaries for a trailing period ending at `now` (UTC).

    mid_period splits the period in two halves for recent-vs-older comparisons
    (fractional days allowed). Week boundaries are ISO weeks: the current week
    starts at midnight of the most recent Monday.
    """
    if period_days is None or period_days < 0:
        raise ValueError(f"period_days must be >= 0, got {period_days!r}")
    now = to_utc(now if now is not None else pd.Timestamp.now(tz="UTC"))
    period_start = now - pd.Timedelta(days=period_days)
    current_week_start = now.normalize() - pd.Timedelta(days=now.isoweekday() - 1)
    return {
        "now": now,
        "period_start": period_start,
        "mid_period": period_start + pd.Timedelta(days=period_days / 2),
        "current_week_start": current_week_start,
        "last_week_start": current_week_start - pd.Timedelta(days=7),
    }


# ═══════════════════════════════════════════════════════════════════════
# 2. ENTRY PREPARATION
# ═══════════════════════════════════════════════════════════════════════

def add_derived_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Clamp numerics and add `day` (UTC midnight) and `entry_volume`.

    `reps` keeps its missing values: volume math counts them as 1, while
    progression tracking treats them as 0 and filters them out.
    """
    if df.empty:
        return df.assign(day=pd.Series(dtype="datetime64[ns, UTC]"), entry_volume=pd.Series(dtype=float))
    df = df.copy()
    df["sets"] = pd.to_numeric(df["sets"], errors="coerce").fillna(0).clip(lower=0)
    df["reps"] = pd.to_numeric(df["reps"], errors="coerce").clip(lower=0)
    df["weight"] = pd.to_numeric(df["weight"], errors="coerce").fillna(0).clip(lower=0)
    df["recorded_at"] = pd.to_datetime(df["recorded_at"], utc=True)
    df["day"] = df["recorded_at"].dt.normalize()
    df["entry_volume"] = df["sets"] * df["reps"].fillna(1) * df["weight"]
    return df


def _format_number(value) -> str:
    """Number as logged: 60.0 → '60', 62.5 → '62.5', 135.58469 → '135.58469'."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)).normalize(), "f")


def _volume_key(volume: pd.Series) -> pd.Series:
    """Summed volumes quantized so decimal-equal totals compare equal."""
    return volume.round(VOLUME_PRECISION)


def performance_string(sets, reps, weight, unit: str = DEFAULT_WEIGHT_UNIT) -> str:
    """Compact set description, e.g. '3x10@60kg'."""
    return f"{_format_number(sets)}x{_format_number(reps)}@{_format_number(weight)}{unit}"


# ═══════════════════════════════════════════════════════════════════════
# 3. MUSCLE GROUP VOLUME
# ═══════════════════════════════════════════════════════════════════════

def muscle_group_summary(
    df: pd.DataFrame,
    period_start,
    top_n: int = TOP_EXERCISES_PER_MUSCLE_GROUP,
) -> dict:
    """
    Per muscle group: total sets, total volume (all exercises, not only the
    top ones), last trained date, distinct exercises and the top exercises by
    volume. Zero-volume exercises count as distinct but never make the top list.
    Entries without a muscle group are ignored here.
    """
    mg = window(df, "recorded_at", period_start)
    if mg.empty:
        return {}
    mg = add_derived_columns(mg[mg["muscle_group"].notna()])
    if mg.empty:
        return {}

    stats = (
        mg.groupby("muscle_group")
        .agg(
            total_sets=("sets", "sum"),
            last_trained=("day", "max"),
            total_volume=("entry_volume", "sum"),
            distinct_exercises=("exercise_name", "nunique"),
        )
        .sort_index()
    )

    ex_vol = (
        mg.groupby(["muscle_group", "exercise_name"])["entry_volume"]
        .sum()
        .reset_index()
    )
    ex_vol["entry_volume"] = _volume_key(ex_vol["entry_volume"])
    ex_vol = ex_vol[ex_vol["entry_volume"] > 0].sort_values(
        ["muscle_group", "entry_volume", "exercise_name"],
        ascending=[True, False, True],
        kind="mergesort",
    )
    top = ex_vol.groupby("muscle_group").head(top_n)

    summary = {}
    for group, row in stats.iterrows():
        top_rows = top[top["muscle_group"] == group]
        summary[group] = {
            "total_sets": int(round_half_up(row["total_sets"], 0)),
            "last_trained_date": row["last_trained"].strftime(DATE_FORMAT),
            "total_volume": round_half_up(row["total_volume"], 2),
            "distinct_exercises_count": int(row["distinct_exercises"]),
            "top_3_exercises_by_volume": [
                {
                    "exercise_name": ex["exercise_name"],
                    "exercise_volume": round_half_up(ex["entry_volume"], 2),
                }
                for _, ex in top_rows.iterrows()
            ],
        }
    return summary


# ═══════════════════════════════════════════════════════════════════════
# 4. EXERCISE PROGRESSION
# ═══════════════════════════════════════════════════════════════════════

def progression_entries(df: pd.DataFrame, period_start) -> pd.DataFrame:
    """
    Entries eligible for progression tracking: a non-cardio muscle group, a
    named exercise, at least one set and at least one rep. Stricter than the
    muscle group filter on purpose: rep-less entries are not tracked.
    """
    ex = window(df, "recorded_at", period_start)
    if ex.empty:
        return add_derived_columns(ex)
    ex = add_derived_columns(ex)
    mask = (
        ex["muscle_group"].notna()
        & (ex["muscle_group"].astype(str).str.lower() != CARDIO_MUSCLE_GROUP.lower())
        & ex["exercise_name"].notna()
        & (ex["sets"] > 0)
        & (ex["reps"].fillna(0) > 0)
    )
    return ex[mask]


def rank_exercises(ex: pd.DataFrame, top_n: int = TOP_N_EXERCISES) -> pd.DataFrame:
    """
    Most frequently trained exercises: distinct training days desc, then total
    volume desc, then name asc. Adds a 1-based `frequency_rank`.
    """
    if ex.empty:
        return pd.DataFrame(columns=["exercise_name", "session_days", "total_volume", "frequency_rank"])
    freq = (
        ex.groupby("exercise_name")
        .agg(session_days=("day", "nunique"), total_volume=("entry_volume", "sum"))
        .reset_index()
        .assign(total_volume=lambda f: _volume_key(f["total_volume"]))
        .sort_values(
            ["session_days", "total_volume", "exercise_name"],
            ascending=[False, False, True],
            kind="mergesort",
        )
        .head(top_n)
        .reset_index(drop=True)
    )
    freq["frequency_rank"] = freq.index + 1
    return freq


def daily_sessions(ex_rows: pd.DataFrame, unit: str = DEFAULT_WEIGHT_UNIT) -> list[dict]:
    """
    Collapse one exercise's entries into one session per day, oldest first.

    Daily volume sums every entry of the day; the performance string and notes
    come from the day's highest-volume entry (latest entry wins a tie).
    """
    if ex_rows.empty:
        return []
    ordered = ex_rows.sort_values(
        ["day", "entry_volume", "recorded_at"],
        ascending=[True, False, False],
        kind="mergesort",
    )
    best = ordered.drop_duplicates("day", keep="first").set_index("day")
    volume = ordered.groupby("day")["entry_volume"].sum()

    sessions = []
    for day, daily_volume in volume.sort_index().items():
        top_entry = best.loc[day]
        notes = top_entry["notes"]
        sessions.append({
            "day": day,
            "daily_volume": float(daily_volume),
            "performance": performance_string(top_entry["sets"], top_entry["reps"], top_entry["weight"], unit),
            "notes": None if notes is None or pd.isna(notes) else notes,
        })
    return sessions


def session_trend(sessions: list[dict]) -> str:
    """Latest daily volume vs. the session right before it (chronologically)."""
    if not sessions:
        return TREND_NA
    current = sessions[-1]["daily_volume"]
    if current is None or pd.isna(current):
        return TREND_NA
    if len(sessions) < 2 or pd.isna(sessions[-2]["daily_volume"]):
        return TREND_FIRST_SESSION
    previous = sessions[-2]["daily_volume"]
    if math.isclose(current, previous, rel_tol=0, abs_tol=1e-9):
        return TREND_STAGNANT
    return TREND_INCREASING if current > previous else TREND_DECREASING


def exercise_progression(
    df: pd.DataFrame,
    period_start,
    weight_unit: str = DEFAULT_WEIGHT_UNIT,
    top_n: int = TOP_N_EXERCISES,
    sessions_shown: int = SESSIONS_FOR_PROGRESSION,
) -> list[dict]:
    """
    Progression for the user's most frequently trained exercises.

    The trend is computed over the full chronological series of daily
    sessions; `last_sessions` only shows the most recent ones, newest first.
    """
    ex = progression_entries(df, period_start)
    ranked = rank_exercises(ex, top_n)

    progression = []
    for _, row in ranked.iterrows():
        sessions = daily_sessions(ex[ex["exercise_name"] == row["exercise_name"]], weight_unit)
        recent = sessions[::-1][:sessions_shown]
        progression.append({
            "exercise_name": row["exercise_name"],
            "frequency_rank": int(row["frequency_rank"]),
            "last_sessions": [
                {
                    "date": s["day"].strftime(DATE_FORMAT),
                    "performance": s["performance"],
                    "notes": s["notes"],
                }
                for s in recent
            ],
            "trend": session_trend(sessions),
        })
    return progression


# ═══════════════════════════════════════════════════════════════════════
# 5. SESSIONS & WEEKLY CONSISTENCY
# ═══════════════════════════════════════════════════════════════════════

def workout_days(df: pd.DataFrame, start, end=None) -> int:
    """Distinct calendar days (UTC) with at least one logged entry in [start, end)."""
    days = window(df, "recorded_at", start, end)
    if days.empty:
        return 0
    return int(days["recorded_at"].dt.normalize().nunique())


def workout_session_stats(df: pd.DataFrame, period_start) -> dict:
    """
    Training days in the period and the average training time per day.

    A day's duration is the sum of its entries' durations; days where nothing
    logged a duration are left out of the average.
    """
    wk = window(df, "recorded_at", period_start)
    if wk.empty:
        return {"total_workout_sessions": 0, "avg_workout_duration_minutes": 0.0}
    day = wk["recorded_at"].dt.normalize()
    duration = pd.to_numeric(wk["duration"], errors="coerce").clip(lower=0)
    per_day = duration.groupby(day).sum(min_count=1).dropna()
    return {
        "total_workout_sessions": int(day.nunique()),
        "avg_workout_duration_minutes": round_half_up(per_day.mean() if not per_day.empty else 0, 1),
    }
