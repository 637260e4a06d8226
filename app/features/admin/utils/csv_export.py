import csv
import io
import json
from typing import Any, Iterable

from app.features.waitlist.models.waitlist import WaitlistEntry

EXPORT_COLUMNS = [
    "id",
    "role",
    "created_at",
    "full_name",
    "email",
    "phone",
    "postcode_area",
    "instagram_handle",
    "compliance_readiness",
    "top_cuisines",
    "dietary_preferences",
    "referral_code",
    "referred_by",
    "referrals_count",
    "referral_points",
    "vendor_priority_score",
    "vendor_queue_override",
    "certificate_url",
    "review_status",
    "admin_notes",
    "reviewed_at",
    "reviewed_by",
    "answers_json",
]

LIST_COLUMNS = {"compliance_readiness", "top_cuisines", "dietary_preferences"}
COUNTER_COLUMNS = {"referrals_count", "referral_points", "vendor_priority_score"}


def join_list(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, list):
        return " | ".join(str(item) for item in value if item)
    return str(value)


def cell(entry: WaitlistEntry, column: str) -> Any:
    if column == "answers_json":
        return json.dumps(entry.answers or {}, ensure_ascii=False)

    value = getattr(entry, column)
    if column in LIST_COLUMNS:
        return join_list(value)
    if column in COUNTER_COLUMNS:
        return value or 0
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return value


def entries_to_csv(entries: Iterable[WaitlistEntry]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for entry in entries:
        writer.writerow([cell(entry, column) for column in EXPORT_COLUMNS])
    return buffer.getvalue()
