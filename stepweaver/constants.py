"""Shared defaults for stepweaver."""

DEFAULT_GATEWAY_URL = "https://router.requesty.ai/v1"
DEFAULT_MODEL = "openai/gpt-4o"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000

# milliseconds, matches the unit stored on agent definitions
DEFAULT_MAX_EXECUTION_TIME = 300_000

DEFAULT_MAX_TRACKED_EXECUTIONS = 100
DEFAULT_EXECUTION_RETENTION_DAYS = 30

LOG_LEVELS = ("debug", "info", "warn", "error")

# CLI store location when no database is configured
DEFAULT_HOME_DIR = "~/.stepweaver"
DEFAULT_DATABASE_FILE = "stepweaver.db"
