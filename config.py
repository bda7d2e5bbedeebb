"""Config interface: loads .env and exposes all settings. .env is the source; this module is the interface."""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Project root (directory containing config.py)
ROOT = Path(__file__).resolve().parent
load_dotenv(ROOT / ".env")


def ensure_root_path() -> None:
    """Ensure project root is on sys.path (for the run_server entry point)."""
    root_str = str(ROOT)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# --- Service identity (set by the platform at instance boot) ---
SERVICE_NAME_ENV = os.getenv("SERVICE_NAME_ENV", "K_SERVICE")

# --- Metadata server ---
# GCE_METADATA_HOST is the variable the Google client libraries honour for emulators
METADATA_HOST = os.getenv("GCE_METADATA_HOST", "metadata.google.internal")
METADATA_TIMEOUT_S = float(os.getenv("METADATA_TIMEOUT_S", "2.0"))

# --- Control plane ---
RUN_API_HOST = os.getenv("RUN_API_HOST", "run.googleapis.com")
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
HTTP_TIMEOUT_S = float(os.getenv("HTTP_TIMEOUT_S", "5.0"))

# --- Warm hand-off ---
HANDOFF_ENABLED = _flag("HANDOFF_ENABLED", "true")
SELF_CALL_DEADLINE_S = float(os.getenv("SELF_CALL_DEADLINE_S", "10.0"))  # platform grace period is ~10 s
SELF_CALL_MAX_ATTEMPTS = int(os.getenv("SELF_CALL_MAX_ATTEMPTS", "0"))  # 0 = bounded by deadline only
SELF_CALL_RETRY_DELAY_S = float(os.getenv("SELF_CALL_RETRY_DELAY_S", "0.0"))
EXIT_ON_SELF_CALL_FAILURE = _flag("EXIT_ON_SELF_CALL_FAILURE", "true")

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "")  # stdout/stderr is collected by the platform

# --- Server (long-lived service) ---
SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
DEFAULT_PORT = 8080


def server_port() -> int:
    """PORT when set (Cloud Run, Heroku); else SERVER_PORT or DEFAULT_PORT."""
    return int(os.getenv("PORT") or os.getenv("SERVER_PORT") or DEFAULT_PORT)


PORT_FROM_ENV = bool(os.getenv("PORT") or os.getenv("SERVER_PORT"))
SERVER_PORT = server_port()
