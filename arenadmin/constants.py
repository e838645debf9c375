"""Global constants for the arenadmin application."""

# Collection names
TOURNAMENTS_COLLECTION = "tournaments"
REGISTRATIONS_COLLECTION = "tournament_registrations"
NOTIFICATIONS_COLLECTION = "notifications"
ANNOUNCEMENTS_COLLECTION = "announcements"

# Tournament statuses
STATUS_UPCOMING = "upcoming"
STATUS_LIVE = "live"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

NON_TERMINAL_STATUSES = (STATUS_UPCOMING, STATUS_LIVE)

# Match types
MATCH_TYPE_SOLO = "solo"
MATCH_TYPE_DUO = "duo"
MATCH_TYPE_SQUAD = "squad"
DEFAULT_MATCH_TYPE = MATCH_TYPE_SQUAD

# Scheduler policy defaults, overridable through app config
SWEEP_INTERVAL_SECONDS = 300
LIVE_DURATION_MINUTES = 60
SWEEP_TIMEOUT_SECONDS = 300

# Prize distribution
BUDGET_EPSILON = 0.01
SUGGESTED_FIRST_PRIZE_SHARE = 0.4
SUGGESTED_KILL_REWARD_SHARE = 0.6

# Notification fields
NOTIFICATION_TYPE_TOURNAMENT = "tournament"
NOTIFICATION_PRIORITY_HIGH = "high"
NOTIFICATION_PRIORITY_NORMAL = "normal"
NOTIFICATION_PRIORITY_LOW = "low"
NOTIFICATION_PRIORITIES = (
    NOTIFICATION_PRIORITY_HIGH,
    NOTIFICATION_PRIORITY_NORMAL,
    NOTIFICATION_PRIORITY_LOW,
)
SYSTEM_USER = "system"
