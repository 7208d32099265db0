DEFAULT_SETTINGS = {
    "study_minutes": 25,               # Length of one study (focus) phase
    "break_minutes": 5,                # Length of a short break
    "long_break_minutes": 15,          # Length of a long break
    "sessions_until_long_break": 4,    # Every n-th completed study phase earns a long break
    "notifications_enabled": True,     # Push "Timer Complete!" notifications to the client
}

# Day index used by routines (matches JavaScript's Date.getDay())
DAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]

EXAM_MODES = ("online", "offline")

RECENT_SESSIONS_LIMIT = 10   # Default number of sessions in the history list
MAX_SESSIONS_LIMIT = 100     # Upper bound for ?limit= on the history list
DASHBOARD_UPCOMING_EXAMS = 5 # Upcoming exams counted on the dashboard
DASHBOARD_RECENT_SESSIONS = 5
