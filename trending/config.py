"""Key resolution, paths, constants, and per-section settings."""

import json
import os
import subprocess
from pathlib import Path

# ─────────────────────────────────────────────────────
# Home directory, all data lives here
# ─────────────────────────────────────────────────────
SKILL_DIR = Path.home() / ".trending-topics"
DATA_DIR = SKILL_DIR / "data"
LOGS_DIR = SKILL_DIR / "logs"
CONFIG_FILE = SKILL_DIR / "config.json"

ALIASES_FILE = DATA_DIR / "aliases.json"
TRENDS_FILE = DATA_DIR / "trends.json"
LEDGER_FILE = DATA_DIR / "ledger.json"

DEFAULT_MODEL = "claude-sonnet-4-6"

STOPWORDS = {
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "from", "by", "is", "are", "was", "were", "be", "been", "has", "have",
    "had", "will", "would", "could", "should", "may", "might", "that", "this",
    "these", "those", "it", "its", "new", "old", "ahead", "as", "into", "up", "out",
    "over", "after",
}

# ─────────────────────────────────────────────────────
# Section defaults, overridden by config.json sections
# ─────────────────────────────────────────────────────
DEFAULTS = {
    "extraction": {
        "profile": "event",
        "model": DEFAULT_MODEL,
        "batch_size": 20,
        "body_chars": 500,
        "max_workers": 3,
        "call_timeout": 30.0,
        "deadline_seconds": 45.0,
        "deadline_margin": 5.0,
        "hours_back": 2,
    },
    "resolver": {
        "use_knowledge_base": False,
        "kb_limit": 10,
        "kb_delay": 0.1,
        "fuzzy_threshold": 0.3,
    },
    "audit": {
        "lookback_hours": 24,
        "baseline_hours": 24,
    },
}


# ─────────────────────────────────────────────────────
# Utilities
# ─────────────────────────────────────────────────────
def write_secret_file(path: Path, content: str):
    """Write a file with 0600 permissions (owner read/write only).

    Uses os.open() with explicit mode to avoid a TOCTOU race where the file
    briefly exists with default (world-readable) permissions.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(content)


def extract_keywords(text: str, limit: int = 4) -> list[str]:
    """Lowercased content words of a phrase, stopwords and short words dropped."""
    words = [w.strip(".,!?\"'()[]:;").lower() for w in text.split()]
    return [w for w in words if w and w not in STOPWORDS and len(w) > 2][:limit]


# ─────────────────────────────────────────────────────
# API key resolution: env, then config.json
# ─────────────────────────────────────────────────────
def _get_key(name: str) -> str:
    """Resolve an API key: environment variable first, then config.json."""
    val = os.environ.get(name)
    if val:
        return val
    if CONFIG_FILE.exists():
        try:
            cfg = json.loads(CONFIG_FILE.read_text())
            val = cfg.get(name)
            if val:
                return val
        except (OSError, ValueError):
            pass
    return ""


def get_anthropic_key() -> str:
    return _get_key("ANTHROPIC_API_KEY")


# ─────────────────────────────────────────────────────
# Claude Max OAuth support
# ─────────────────────────────────────────────────────
CLAUDE_CREDENTIALS = Path.home() / ".claude" / ".credentials.json"


def has_claude_cli() -> bool:
    """Check if the `claude` CLI is available."""
    import shutil
    return shutil.which("claude") is not None


def _has_claude_max_credentials() -> bool:
    """Check if Claude Max OAuth credentials exist."""
    if not CLAUDE_CREDENTIALS.exists():
        return False
    try:
        creds = json.loads(CLAUDE_CREDENTIALS.read_text())
        return bool(creds.get("claudeAiOauth", {}).get("accessToken"))
    except (OSError, ValueError):
        return False


def call_claude_cli(prompt: str, model: str = DEFAULT_MODEL, timeout: float = 120) -> str:
    """Call Claude via the `claude` CLI in non-interactive mode."""
    import shutil
    claude_path = shutil.which("claude")
    if not claude_path:
        raise RuntimeError("claude CLI not found. Install it or set ANTHROPIC_API_KEY.")

    # Strip CLAUDECODE env var so the CLI can run from inside another session
    env = {k: v for k, v in os.environ.items() if k != "CLAUDECODE"}

    r = subprocess.run(
        [claude_path, "--print", "--model", model, "--max-turns", "1", "-p", prompt],
        capture_output=True,
        text=True,
        timeout=timeout,
        env=env,
    )
    if r.returncode != 0:
        raise RuntimeError(f"claude CLI failed: {r.stderr[:300]}")
    return r.stdout.strip()


def get_anthropic_client(timeout: float | None = None):
    """Create an Anthropic client if an API key is available.

    Returns the client, or None if no API key (caller should use call_claude_cli).
    """
    import anthropic

    api_key = get_anthropic_key()
    if api_key:
        if timeout is not None:
            return anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        return anthropic.Anthropic(api_key=api_key)

    return None


def get_claude_backend() -> str:
    """Determine which Claude backend to use.

    Returns: "api" if ANTHROPIC_API_KEY is set, "cli" if claude CLI is available.
    Raises RuntimeError if neither is available.
    """
    if get_anthropic_key():
        return "api"
    if has_claude_cli() and _has_claude_max_credentials():
        return "cli"
    raise RuntimeError(
        "No Claude access found. Either:\n"
        "  1. Set ANTHROPIC_API_KEY in env or ~/.trending-topics/config.json\n"
        "  2. Log in with the claude CLI (claude login)"
    )


def load_config() -> dict:
    """Load the full config.json."""
    if CONFIG_FILE.exists():
        try:
            return json.loads(CONFIG_FILE.read_text())
        except (OSError, ValueError):
            pass
    return {}


def save_config(config: dict):
    """Save config.json with restricted permissions."""
    SKILL_DIR.mkdir(parents=True, exist_ok=True)
    write_secret_file(CONFIG_FILE, json.dumps(config, indent=2))


def set_option(config: dict, dotted: str, raw: str) -> dict:
    """Set ``section.key`` from a CLI string. JSON literals are decoded, anything else stays text."""
    section, _, key = dotted.partition(".")
    if not section or not key:
        raise ValueError(f"Expected section.key, got '{dotted}'")
    try:
        value = json.loads(raw)
    except ValueError:
        value = raw
    config.setdefault(section, {})[key] = value
    return config


def get_section(name: str, config: dict | None = None) -> dict:
    """Settings for one section: DEFAULTS overlaid with config.json values."""
    if config is None:
        config = load_config()
    merged = dict(DEFAULTS.get(name, {}))
    overrides = config.get(name, {})
    if isinstance(overrides, dict):
        merged.update(overrides)
    return merged
