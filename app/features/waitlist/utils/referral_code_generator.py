import secrets
import time

# No 0/O or 1/I so codes survive being read aloud or retyped
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_referral_code(length: int = 10) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def generate_fallback_code(length: int = 10) -> str:
    """Shorter random prefix plus the last two digits of the clock, used once retries run out."""
    suffix = str(int(time.time() * 1000))[-2:]
    return f"{generate_referral_code(max(4, length - 2))}{suffix}"
