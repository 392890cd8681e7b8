"""
Activity Summary — Configuration

Log store credentials come from the environment; everything else is an
engine constant. The summary output contract depends on the label constants
below, so changing any of them is a breaking change for consumers.
"""
import os

# ── Log store (PostgREST / Supabase) ─────────────────────────────────
SUPABASE_URL = os.environ.get("SUPABASE_URL", "").rstrip("/")
SUPABASE_SERVICE_KEY = os.environ.get("SUPABASE_SERVICE_KEY", "")

LOG_STORE_TIMEOUT = float(os.environ.get("LOG_STORE_TIMEOUT", "15"))
LOG_STORE_PAGE_SIZE = int(os.environ.get("LOG_STORE_PAGE_SIZE", "1000"))

WORKOUTS_TABLE = "workouts"
ACTIVITIES_TABLE = "user_strava_activities"
PROFILES_TABLE = "profiles"

# ── Period / units ───────────────────────────────────────────────────
DEFAULT_PERIOD_DAYS = 30
DEFAULT_WEIGHT_UNIT = "kg"
WEIGHT_UNITS = ("kg", "lbs")

# ── Engine limits ────────────────────────────────────────────────────
TOP_N_EXERCISES = 3               # exercises that get progression tracking
SESSIONS_FOR_PROGRESSION = 3      # daily sessions shown per tracked exercise
TOP_EXERCISES_PER_MUSCLE_GROUP = 3
NUM_RECENT_RUNS = 3

CARDIO_MUSCLE_GROUP = "Cardio"
DEFAULT_ACTIVITY_TYPE = "Run"

# ── Output labels (closed sets) ──────────────────────────────────────
TREND_INCREASING = "Increasing"
TREND_DECREASING = "Decreasing"
TREND_STAGNANT = "Stagnant"
TREND_FIRST_SESSION = "First Session"
TREND_NA = "N/A"

PACE_NO_DATA = "No Pace Data"
PACE_NO_RECENT = "No Recent Pace Data"
PACE_NO_OLDER = "No Older Pace Data for Comparison"
PACE_FASTER = "Faster"
PACE_SLOWER = "Slower"
PACE_CONSISTENT = "Consistent"

PACE_NOT_AVAILABLE = "N/A"

DATE_FORMAT = "%Y-%m-%d"
