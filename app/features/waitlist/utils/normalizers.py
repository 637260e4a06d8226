import re
from typing import Any, Optional

TRUTHY = {"true", "1", "yes", "on"}
FALSY = {"false", "0", "no", "off"}


def normalize_bool(value: Any) -> bool:
    """Checkbox-style coercion: anything not clearly truthy is False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    return False


def normalize_yes_no(value: Any) -> Optional[bool]:
    """Tri-state coercion for Yes/No questions; None when unanswered or unrecognised."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    if isinstance(value, str):
        s = value.strip().lower()
        if s in {"yes", "true", "1"}:
            return True
        if s in {"no", "false", "0"}:
            return False
    return None


def query_bool(value: Optional[str]) -> Optional[bool]:
    if not value:
        return None
    s = value.strip().lower()
    if s in TRUTHY:
        return True
    if s in FALSY:
        return False
    return None


def clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def clean_ig_handle(value: Any) -> Optional[str]:
    """Strip a leading @; handles containing whitespace are rejected."""
    s = clean_text(value)
    if not s:
        return None
    if s.startswith("@"):
        s = s[1:].strip()
    if not s or re.search(r"\s", s):
        return None
    return s


def string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def clean_code(value: Any) -> str:
    """Queue and referral codes are upper-case alphanumerics."""
    return re.sub(r"[^A-Z0-9]", "", str(value or "").strip().upper())
