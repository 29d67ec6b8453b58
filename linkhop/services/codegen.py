"""Random short code generation."""

import random
import secrets
import string
import time

import structlog

logger = structlog.get_logger()

# Characters for random short code generation (base62)
SHORT_CODE_CHARS = string.ascii_lowercase + string.ascii_uppercase + string.digits
SHORT_CODE_LENGTH = 6


def generate_code(length: int = SHORT_CODE_LENGTH) -> str:
    """Generate a random short code using base62 characters.

    Characters come from ``secrets``, which samples without modulo bias.
    If the OS randomness source is unavailable, a clock-seeded
    ``random.Random`` is used instead. That fallback is lower entropy and
    easier to predict, but it keeps link creation working; collisions it
    produces are caught by the caller's existence check.
    """
    try:
        return "".join(secrets.choice(SHORT_CODE_CHARS) for _ in range(length))
    except (OSError, NotImplementedError) as e:
        logger.warning("Secure random source unavailable, using fallback", error=str(e))
        return _fallback_code(length)


def _fallback_code(length: int) -> str:
    rng = random.Random(time.time_ns())
    return "".join(rng.choice(SHORT_CODE_CHARS) for _ in range(length))
