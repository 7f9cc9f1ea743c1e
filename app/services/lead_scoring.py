"""Lead quality scoring and read-time derived lead fields.

All functions are pure over the lead's current attribute values, so scoring
the same lead twice always gives the same number.
"""

import math
from datetime import datetime, timedelta
from typing import Any, Optional

MAX_SCORE = 100

FIELD_POINTS = {
    "name": 10,
    "email": 15,
    "phone": 10,
    "company_name": 15,
}
LONG_MESSAGE_POINTS = 10
LONG_MESSAGE_CHARS = 50
BUDGET_POINTS = 15
TIMELINE_POINTS = 10
INTERESTS_POINTS = 5

SOURCE_POINTS = {
    "referral": 20,
    "email": 15,
    "form": 10,
    "website": 5,
}


def _value(value: Any) -> Any:
    """Unwrap str enums so comparisons work for both members and raw strings."""
    return getattr(value, "value", value)


def _clamp(score: float) -> int:
    return int(max(0, min(MAX_SCORE, score)))


def compute_lead_score(lead: Any) -> int:
    """Additive 0-100 quality score from the lead's fields and source."""
    score = 0

    for field, points in FIELD_POINTS.items():
        if getattr(lead, field, None):
            score += points

    message = getattr(lead, "message", None)
    if message and len(message) > LONG_MESSAGE_CHARS:
        score += LONG_MESSAGE_POINTS

    budget = _value(getattr(lead, "budget_range", None))
    if budget and budget != "not-specified":
        score += BUDGET_POINTS

    timeline = _value(getattr(lead, "timeline", None))
    if timeline and timeline != "flexible":
        score += TIMELINE_POINTS

    if getattr(lead, "interests", None):
        score += INTERESTS_POINTS

    score += SOURCE_POINTS.get(_value(getattr(lead, "source", None)), 0)

    return _clamp(score)


def _age_days(created_at: Optional[datetime], now: Optional[datetime] = None) -> float:
    if created_at is None:
        return 0.0
    now = now or datetime.utcnow()
    return (now - created_at).total_seconds() / 86400


def days_since(created_at: Optional[datetime], now: Optional[datetime] = None) -> int:
    return math.floor(_age_days(created_at, now))


def age_category(created_at: Optional[datetime], now: Optional[datetime] = None) -> str:
    days = days_since(created_at, now)
    if days <= 1:
        return "fresh"
    if days <= 7:
        return "warm"
    if days <= 30:
        return "aging"
    return "cold"


def conversion_probability(lead: Any, now: Optional[datetime] = None) -> int:
    """Lead score adjusted by engagement signals and age, clamped to 0-100."""
    probability = getattr(lead, "lead_score", None) or compute_lead_score(lead)

    if (getattr(lead, "contact_attempts", 0) or 0) > 0:
        probability += 10
    if getattr(lead, "notes", None):
        probability += 5
    if getattr(lead, "company_name", None):
        probability += 5
    if getattr(lead, "phone", None):
        probability += 5

    age = _age_days(getattr(lead, "created_at", None), now)
    if age > 30:
        probability -= 20
    elif age > 7:
        probability -= 10

    return _clamp(probability)


def contact_urgency(lead: Any, now: Optional[datetime] = None) -> str:
    if _value(getattr(lead, "priority", None)) == "urgent":
        return "immediate"

    follow_up = getattr(lead, "next_follow_up_at", None)
    if follow_up is None:
        return "none"

    now = now or datetime.utcnow()
    if follow_up < now:
        return "overdue"
    if follow_up - now <= timedelta(hours=24):
        return "today"
    return "scheduled"
