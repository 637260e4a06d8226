"""
Vendor priority scoring (0-10) from vendor waitlist answers.

Each signal is capped on its own and the total is clamped, so a missing or
garbled answer only ever costs the points for that signal:

- compliance readiness: 2 per ticked item, max 6; "None of the above" scores 0
- currently sells food: 1
- weekly portions: 0 / 1 / 2 by bucket
- postcode area given: 1
- plausible Instagram handle: 2

Several key spellings are accepted per signal because the form has been
renamed over time and old submissions still carry the earlier keys.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from app.features.waitlist.questions import COMPLIANCE_NONE
from app.features.waitlist.utils.normalizers import normalize_yes_no

MIN_SCORE = 0
MAX_SCORE = 10

COMPLIANCE_POINTS_PER_ITEM = 2
COMPLIANCE_CAP = 6
CURRENTLY_SELLS_POINTS = 1
VOLUME_CAP = 2
LOCALITY_POINTS = 1
SOCIAL_POINTS = 2

COMPLIANCE_KEYS = ("compliance_readiness", "compliance", "compliance_docs")
CURRENTLY_SELLS_KEYS = ("currently_sell", "currently_sells", "sells_food")
VOLUME_KEYS = ("portions_per_week", "weekly_portions", "weekly_volume")
LOCALITY_KEYS = ("postcode_area", "postcode", "city")
SOCIAL_KEYS = (
    "instagram_handle",
    "ig_handle",
    "instagram",
    "ig",
    "instagramHandle",
    "social_instagram",
)

_NONE_ANSWERS = {COMPLIANCE_NONE.lower(), "none"}
_NO_SOCIAL_PHRASES = ("dont have", "don't have", "don’t have", "do not have", "no instagram", "no ig")
_NO_SOCIAL_TOKENS = {"none", "n/a", "na", "no", "nil", "-"}
_NUMBER = re.compile(r"\d+(?:\.\d+)?")


@dataclass
class VendorPriorityResult:
    total: int
    compliance: int
    currently_sells: int
    volume: int
    locality: int
    social: int
    notes: list[str] = field(default_factory=list)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _first_text(answers: Mapping[str, Any], keys: Iterable[str]) -> str:
    for key in keys:
        value = answers.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _first_present(answers: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = answers.get(key)
        if value is not None and value != "":
            return value
    return None


def compliance_items(answers: Mapping[str, Any]) -> list[str]:
    """Distinct ticked compliance items across every accepted key."""
    seen: dict[str, str] = {}
    for key in COMPLIANCE_KEYS:
        value = answers.get(key)
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            continue
        for item in value:
            if isinstance(item, str) and item.strip():
                seen.setdefault(item.strip().lower(), item.strip())
    return list(seen.values())


def compliance_points(items: list[str]) -> int:
    if any(item.lower() in _NONE_ANSWERS for item in items):
        return 0
    return min(COMPLIANCE_CAP, len(items) * COMPLIANCE_POINTS_PER_ITEM)


def weekly_portions(raw: Any) -> Optional[float]:
    """
    Reads a portions answer as a number. Range buckets ("6–10") use their upper
    bound and open buckets ("40+") their lower bound.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        try:
            return float(raw)
        except OverflowError:
            # Beyond float range
            return math.inf if raw > 0 else None
    if isinstance(raw, float):
        return raw if math.isfinite(raw) else None
    if not isinstance(raw, str):
        return None
    numbers = _NUMBER.findall(raw)
    if not numbers:
        return None
    return float(numbers[-1])


def volume_points(portions: Optional[float]) -> int:
    if portions is None or portions <= 5:
        return 0
    if portions <= 20:
        return 1
    return VOLUME_CAP


def is_plausible_handle(raw: str) -> bool:
    s = raw.strip().lower()
    if not s:
        return False
    if s in _NO_SOCIAL_TOKENS or any(phrase in s for phrase in _NO_SOCIAL_PHRASES):
        return False
    if "instagram.com/" in s:
        return True
    handle = s.lstrip("@").strip()
    return len(handle) >= 2 and not re.search(r"\s", handle)


def vendor_priority_breakdown(answers: Optional[Mapping[str, Any]]) -> VendorPriorityResult:
    if not isinstance(answers, Mapping):
        answers = {}
    notes: list[str] = []

    items = compliance_items(answers)
    compliance = compliance_points(items)
    if compliance == 0 and items:
        notes.append("Compliance: 'None of the above' selected (0)")

    currently_sells = (
        CURRENTLY_SELLS_POINTS
        if normalize_yes_no(_first_present(answers, CURRENTLY_SELLS_KEYS)) is True
        else 0
    )

    raw_volume = _first_present(answers, VOLUME_KEYS)
    portions = weekly_portions(raw_volume)
    volume = volume_points(portions)
    if raw_volume is not None and portions is None:
        notes.append(f"Volume: could not read portions from {raw_volume!r} (0)")

    locality = LOCALITY_POINTS if _first_text(answers, LOCALITY_KEYS) else 0

    social = 0
    if normalize_yes_no(answers.get("has_food_ig")) is False:
        notes.append("Instagram: vendor has no food page (0)")
    else:
        handle = _first_text(answers, SOCIAL_KEYS)
        if not handle:
            notes.append("Instagram: missing (0)")
        elif is_plausible_handle(handle):
            social = SOCIAL_POINTS
        else:
            notes.append("Instagram: looks like 'no IG' (0)")

    total = _clamp(compliance + currently_sells + volume + locality + social, MIN_SCORE, MAX_SCORE)

    return VendorPriorityResult(
        total=total,
        compliance=compliance,
        currently_sells=currently_sells,
        volume=volume,
        locality=locality,
        social=social,
        notes=notes,
    )


def vendor_priority_score(answers: Optional[Mapping[str, Any]]) -> int:
    return vendor_priority_breakdown(answers).total
