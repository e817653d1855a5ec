"""session_index configuration."""
import os
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


# Claude Code data directory; transcripts live under <CLAUDE_DIR>/projects
CLAUDE_DIR = Path(os.getenv("SESSION_INDEX_CLAUDE_DIR", str(Path.home() / ".claude"))).expanduser()
PROJECTS_DIR = CLAUDE_DIR / "projects"

# Upper bound on concurrent per-file / per-project filesystem work
MAX_CONCURRENT_OPERATIONS = max(1, _env_int("SESSION_INDEX_MAX_CONCURRENCY", 8))

# Length of the first-message preview in session summaries
FIRST_MESSAGE_MAX_CHARS = 200

# Server settings
HOST = os.getenv("SESSION_INDEX_HOST", "127.0.0.1")
PORT = _env_int("SESSION_INDEX_PORT", 8000)
LOG_LEVEL = os.getenv("SESSION_INDEX_LOG_LEVEL", "INFO").upper()
