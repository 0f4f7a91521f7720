"""
This module contains the default configuration settings for god.
Every value can be overridden from the environment (or a `.env` file) and,
for the most common ones, from the command line.
"""

import os
from dotenv import load_dotenv

from god.errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('true', '1', 't', 'yes', 'y')


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be a number, got '{value}'.") from None


#* --- Health Check Settings ---
# Empty string disables the HTTP health surface entirely.
DEFAULT_LISTEN_ADDR = "127.0.0.1:7788"
HEALTH_LISTEN_ADDR = os.getenv("GOD_LISTEN_ADDR", DEFAULT_LISTEN_ADDR)
HEALTH_PATH = "/health"
HEALTH_PROBE_TIMEOUT = _env_float("GOD_PROBE_TIMEOUT", 2)  # seconds

#* --- Supervisor Settings ---
DEBUG = _env_bool("GOD_DEBUG", False)
INIT_CONCURRENT = _env_bool("GOD_INIT_CONCURRENT", False)
FORWARD_SIGNALS = _env_bool("GOD_FORWARD_SIGNALS", False)
GRACEFUL_SHUTDOWN_TIMEOUT = _env_float("GOD_GRACEFUL_SHUTDOWN_TIMEOUT", 10)  # seconds before force-killing
OUTPUT_DRAIN_TIMEOUT = _env_float("GOD_OUTPUT_DRAIN_TIMEOUT", 5)  # seconds
SUPERVISOR_POLL_INTERVAL = _env_float("GOD_POLL_INTERVAL", 1)  # seconds
SHELL = os.getenv("GOD_SHELL", "sh")

#* --- Process Settings ---
PROCESS_TITLE = "god - Supervisor"
