"""Internal constants shared across the library."""

APP_NAME = "Rubel Engine"
APP_VERSION = "1.0.0"
DEFAULT_CATEGORY = "Custom"
SYNC_EMAIL_SUBJECT = "Rubel Engine Data Sync"

# ------------------------------------------------------------------
# Collection caps (newest-first logs, oldest evicted on overflow)
# ------------------------------------------------------------------

GPS_LOG_CAP = 200
PHOTO_LOG_CAP = 100
COMMAND_LOG_CAP = 500

# ------------------------------------------------------------------
# Seed data used when no ``features`` key has been persisted yet
# ------------------------------------------------------------------

# (id, name, description, category, enabled)
DEFAULT_FEATURES: tuple[tuple[str, str, str, str, bool], ...] = (
    ("f001", "GPS Tracking", "Real-time location logging", "Sensors", True),
    ("f002", "Camera Capture", "Offline photo capture", "Sensors", True),
    ("f003", "Email Sync", "Sync data when online", "Network", True),
    ("f004", "Dark Mode", "Always-on dark interface", "UI", True),
    ("f005", "Haptic Feedback", "Tactile button responses", "UI", True),
    ("f006", "Auto GPS Log", "Log GPS every 30 seconds", "Sensors", False),
    ("f007", "Battery Monitor", "Track battery usage", "System", False),
    ("f008", "Network Watch", "Monitor connectivity state", "Network", True),
    ("f009", "Command History", "Save all command logs", "System", True),
    ("f010", "Photo Compression", "Compress photos on save", "Sensors", False),
)
