"""Tests for lead scoring and the derived lead fields."""

from datetime import datetime, timedelta
from types import SimpleNamespace

from app.services.lead_scoring import (
    age_category,
    compute_lead_score,
    contact_urgency,
    conversion_probability,
    days_since,
)

NOW = datetime(2024, 6, 1, 12, 0, 0)


def make_lead(**fields):
    defaults = {
        "name": None,
        "email": None,
        "phone": None,
        "company_name": None,
        "message": None,
        "budget_range": "not-specified",
        "timeline": "flexible",
        "interests": [],
        "source": None,
        "lead_score": 0,
        "contact_attempts": 0,
        "notes": [],
        "created_at": NOW,
        "priority": "medium",
        "next_follow_up_at": None,
    }
    defaults.update(fields)
    return SimpleNamespace(**defaults)


def test_minimal_website_lead_scores_30():
    """Name + email from the website form: 10 + 15 + 5."""
    lead = make_lead(name="Jane", email="jane@example.com", source="website")
    assert compute_lead_score(lead) == 30


def test_full_referral_lead_is_capped_at_100():
    lead = make_lead(
        name="Jane",
        email="jane@example.com",
        phone="+15550100",
        company_name="Acme",
        message="x" * 51,
        budget_range="5k-10k",
        timeline="immediate",
        interests=["crm"],
        source="referral",
    )
    # 10 + 15 + 10 + 15 + 10 + 15 + 10 + 5 + 20 = 110
    assert compute_lead_score(lead) == 100


def test_message_must_exceed_50_chars():
    short = make_lead(message="x" * 50)
    long = make_lead(message="x" * 51)
    assert compute_lead_score(short) == 0
    assert compute_lead_score(long) == 10


def test_unknown_source_adds_nothing():
    assert compute_lead_score(make_lead(source="social")) == 0
    assert compute_lead_score(make_lead(source="email")) == 15


def test_scoring_is_deterministic():
    lead = make_lead(name="Jane", email="jane@example.com", company_name="Acme", source="form")
    assert compute_lead_score(lead) == compute_lead_score(lead) == 50


def test_age_category_boundaries():
    assert age_category(NOW - timedelta(hours=30), NOW) == "fresh"
    assert age_category(NOW - timedelta(days=7), NOW) == "warm"
    assert age_category(NOW - timedelta(days=30), NOW) == "aging"
    assert age_category(NOW - timedelta(days=31), NOW) == "cold"
    assert days_since(NOW - timedelta(days=3, hours=5), NOW) == 3


def test_conversion_probability_adjustments():
    lead = make_lead(lead_score=50, contact_attempts=2, notes=[{"content": "x"}], company_name="Acme", phone="1")
    assert conversion_probability(lead, NOW) == 75

    lead.created_at = NOW - timedelta(days=10)
    assert conversion_probability(lead, NOW) == 65

    lead.created_at = NOW - timedelta(days=45)
    assert conversion_probability(lead, NOW) == 55


def test_conversion_probability_is_clamped():
    lead = make_lead(lead_score=98, contact_attempts=1, phone="1")
    assert conversion_probability(lead, NOW) == 100


def test_contact_urgency():
    assert contact_urgency(make_lead(priority="urgent"), NOW) == "immediate"
    assert contact_urgency(make_lead(), NOW) == "none"
    assert contact_urgency(make_lead(next_follow_up_at=NOW - timedelta(minutes=1)), NOW) == "overdue"
    assert contact_urgency(make_lead(next_follow_up_at=NOW + timedelta(hours=3)), NOW) == "today"
    assert contact_urgency(make_lead(next_follow_up_at=NOW + timedelta(days=3)), NOW) == "scheduled"
