"""Runtime configuration, read from the environment (and .env if present)."""

import asyncio
import logging
import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Simulated agent processing time in seconds, scaled by AGENT_LATENCY_SCALE.
# The default scale of 0 turns the delays off.
AGENT_LATENCY_SCALE = float(os.environ.get("AGENT_LATENCY_SCALE", "0"))
EXTRACTION_DELAY = 1.0
SALARY_CHECK_DELAY = 0.5
UNDERWRITING_DELAY = 0.8

REQUEST_TIMEOUT_SECONDS = float(os.environ.get("REQUEST_TIMEOUT_SECONDS", "30"))

SANCTION_LETTER_DIR = os.environ.get("SANCTION_LETTER_DIR", "sanction-letters")
SANCTION_URL_PREFIX = os.environ.get("SANCTION_URL_PREFIX", "/sanction-letter")


def _optional_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if value is None or value == "":
        return None
    return int(value)


# Seed for the mock bureau score fallback; unset means non-deterministic.
CREDIT_SCORE_SEED = _optional_int("CREDIT_SCORE_SEED")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once for the service."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)


async def simulate_latency(seconds: float) -> None:
    """Sleep for a scaled, simulated processing delay (no-op when scale is 0)."""
    delay = seconds * AGENT_LATENCY_SCALE
    if delay > 0:
        await asyncio.sleep(delay)
