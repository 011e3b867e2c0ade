"""Constants for trafficboard.

This module centralizes the default values and fixed vocabularies used throughout the application.
"""

# Task status values (display strings as configured in the Notion task database)
DEFAULT_TASK_STATUS = "Pas commencé"
COMPLETED_STATUSES = ("Terminé", "Completed", "Done", "Fini")
FALLBACK_STATUS_OPTIONS = (
    {"id": "1", "name": "Pas commencé", "color": "gray"},
    {"id": "2", "name": "En cours", "color": "blue"},
    {"id": "3", "name": "Terminé", "color": "green"},
)

# Untitled tasks
DEFAULT_TASK_NAME = "Tâche sans nom"

# Date-only inputs are expanded to a working day
DAY_START_TIME = "09:00:00"
DAY_END_TIME = "18:00:00"

# Task cache
DEFAULT_CACHE_TTL_SECONDS = 300
WEEK_PREWARM_SHIFT_DAYS = 14

# Client colors
DEFAULT_CLIENT_COLOR = "#6366f1"
CLIENT_COLOR_PALETTE = (
    "#6366f1",
    "#8b5cf6",
    "#a855f7",
    "#d946ef",
    "#ec4899",
    "#f43f5e",
    "#ef4444",
    "#f97316",
    "#f59e0b",
    "#eab308",
    "#84cc16",
    "#22c55e",
    "#10b981",
    "#14b8a6",
    "#06b6d4",
    "#0ea5e9",
    "#3b82f6",
    "#6366f1",
    "#8b5cf6",
    "#a855f7",
)
HEX_COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"
