"""
Activity Summary — Command Line Report
Run manually: python -m src.report <user_id> [--days N] [--json]
"""
import json
import sys

from src.activity_summary import get_user_activity_summary
from src.config import (
    DEFAULT_PERIOD_DAYS,
    PACE_FASTER,
    PACE_SLOWER,
    TREND_INCREASING,
    TREND_DECREASING,
    TREND_STAGNANT,
    TREND_FIRST_SESSION,
)

TREND_ICONS = {
    TREND_INCREASING: "📈",
    TREND_DECREASING: "📉",
    TREND_STAGNANT: "➖",
    TREND_FIRST_SESSION: "🆕",
}


def parse_args(argv: list[str]) -> dict:
    """Minimal argv parsing: one positional user id plus --days / --json."""
    args = {"user_id": None, "period_days": DEFAULT_PERIOD_DAYS, "as_json": False}
    rest = list(argv)
    while rest:
        arg = rest.pop(0)
        if arg == "--json":
            args["as_json"] = True
        elif arg == "--days":
            if not rest:
                raise ValueError("--days needs a value")
            args["period_days"] = int(rest.pop(0))
        elif arg.startswith("--days="):
            args["period_days"] = int(arg.split("=", 1)[1])
        elif args["user_id"] is None:
            args["user_id"] = arg
        else:
            raise ValueError(f"Unexpected argument: {arg}")
    if args["user_id"] is None:
        raise ValueError("Missing user id")
    if args["period_days"] < 0:
        raise ValueError("--days must be >= 0")
    return args


def format_report(summary: dict, period_days: int) -> list[str]:
    """Human-readable digest of a summary, one line per entry."""
    lines = [
        f"📊 Activity Summary — last {period_days} days",
        f"   Workout days: {summary['total_workout_sessions']}"
        f" (avg {summary['avg_workout_duration_minutes']} min)",
        f"   Runs: {summary['total_run_sessions']}"
        f" (avg {summary['avg_run_distance_meters'] / 1000:.2f} km,"
        f" {summary['avg_run_duration_seconds'] // 60} min)",
        f"   This week: {summary['workout_days_this_week']} days"
        f" | Last week: {summary['workout_days_last_week']} days",
    ]

    groups = summary["muscle_group_summary"]
    if groups:
        lines.append("")
        lines.append("💪 Muscle groups:")
        ordered = sorted(groups.items(), key=lambda kv: kv[1]["total_volume"], reverse=True)
        for group, mg in ordered:
            top = ", ".join(ex["exercise_name"] for ex in mg["top_3_exercises_by_volume"]) or "—"
            lines.append(
                f"   {group}: {mg['total_sets']} sets, {mg['total_volume']:,} volume,"
                f" {mg['distinct_exercises_count']} exercises (last {mg['last_trained_date']}) | top: {top}"
            )

    progression = summary["dynamic_exercise_progression"]
    if progression:
        lines.append("")
        lines.append("🏋️ Tracked lifts:")
        for ex in progression:
            icon = TREND_ICONS.get(ex["trend"], "❔")
            lines.append(f"   #{ex['frequency_rank']} {ex['exercise_name']}: {icon} {ex['trend']}")
            for s in ex["last_sessions"]:
                note = f" — {s['notes']}" if s["notes"] else ""
                lines.append(f"      📅 {s['date']} | {s['performance']}{note}")

    runs = summary["last_3_runs"]
    if runs:
        lines.append("")
        lines.append("🏃 Recent runs:")
        for run in runs:
            lines.append(
                f"   📅 {run['run_date']} | {run['name'] or run['run_type']} | {run['distance_km']} km"
                f" in {run['duration_min']} min @ {run['avg_pace_min_km']}/km, +{run['elevation_gain_m']} m"
            )

    trend = summary["recent_run_pace_trend"]
    icon = {PACE_FASTER: "🟢", PACE_SLOWER: "🔴"}.get(trend, "⬜")
    lines.append("")
    lines.append(f"{icon} Pace trend: {trend}")
    return lines


def run_report(user_id: str, period_days: int = DEFAULT_PERIOD_DAYS, as_json: bool = False) -> dict:
    """Fetch the summary for a user and print it."""
    if not as_json:
        print(f"🔄 Building activity summary for {user_id}...")
    summary = get_user_activity_summary(user_id, period_days)
    if as_json:
        print(json.dumps(summary, indent=2, ensure_ascii=False))
    else:
        print()
        for line in format_report(summary, period_days):
            print(line)
    return summary


if __name__ == "__main__":
    try:
        cli = parse_args(sys.argv[1:])
    except ValueError as e:
        print(f"❌ {e}")
        print("Usage: python -m src.report <user_id> [--days N] [--json]")
        sys.exit(2)

    try:
        run_report(cli["user_id"], cli["period_days"], cli["as_json"])
    except Exception as e:
        print(f"\n❌ Summary unavailable: {e}")
        sys.exit(1)
