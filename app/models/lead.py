"""Lead model: a visitor's submitted interest in a perk."""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Integer, Float, Boolean, event, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
from app.core.database import Base
from app.services import lead_scoring


class LeadSource(str, enum.Enum):
    WEBSITE = "website"
    FORM = "form"
    EMAIL = "email"
    PHONE = "phone"
    REFERRAL = "referral"
    SOCIAL = "social"
    ADVERTISING = "advertising"
    OTHER = "other"


class LeadStatus(str, enum.Enum):
    """Pipeline status; any transition is allowed."""
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CONVERTED = "converted"
    CLOSED = "closed"


class LeadPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class BudgetRange(str, enum.Enum):
    UNDER_1K = "under-1k"
    FROM_1K_TO_5K = "1k-5k"
    FROM_5K_TO_10K = "5k-10k"
    FROM_10K_TO_25K = "10k-25k"
    FROM_25K_TO_50K = "25k-50k"
    OVER_50K = "50k+"
    NOT_SPECIFIED = "not-specified"


class Currency(str, enum.Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    SGD = "SGD"
    MYR = "MYR"


class Timeline(str, enum.Enum):
    IMMEDIATE = "immediate"
    ONE_MONTH = "1-month"
    THREE_MONTHS = "3-months"
    SIX_MONTHS = "6-months"
    ONE_YEAR = "1-year"
    FLEXIBLE = "flexible"


class CompanySize(str, enum.Enum):
    SIZE_1_10 = "1-10"
    SIZE_11_50 = "11-50"
    SIZE_51_200 = "51-200"
    SIZE_201_1000 = "201-1000"
    SIZE_1000_PLUS = "1000+"
    NOT_SPECIFIED = "not-specified"


class ContactMethod(str, enum.Enum):
    EMAIL = "email"
    PHONE = "phone"
    WHATSAPP = "whatsapp"
    LINKEDIN = "linkedin"
    NOT_SPECIFIED = "not-specified"


class NoteType(str, enum.Enum):
    GENERAL = "general"
    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"
    FOLLOW_UP = "follow-up"


class ConversionType(str, enum.Enum):
    SIGNUP = "signup"
    PURCHASE = "purchase"
    DEMO = "demo"
    CONSULTATION = "consultation"
    PARTNERSHIP = "partnership"
    OTHER = "other"


class Lead(Base):
    __tablename__ = "leads"
    __table_args__ = (
        UniqueConstraint("email", "perk_id", name="uq_leads_email_perk"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)

    # Company
    company_name = Column(String(200), nullable=True)
    company_website = Column(String(500), nullable=True)
    company_size = Column(String(20), nullable=False, default=CompanySize.NOT_SPECIFIED.value)
    job_title = Column(String(100), nullable=True)

    # Interest
    message = Column(Text, nullable=True)
    interests = Column(JSON, nullable=False, default=list)
    budget_range = Column(String(20), nullable=False, default=BudgetRange.NOT_SPECIFIED.value)
    budget_currency = Column(String(3), nullable=False, default=Currency.USD.value)
    timeline = Column(String(20), nullable=False, default=Timeline.FLEXIBLE.value)
    preferred_contact_method = Column(String(20), nullable=False, default=ContactMethod.EMAIL.value)

    # Weak references; names are copied so history survives deletes
    perk_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    perk_title = Column(String(200), nullable=True)
    category_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    category_name = Column(String(100), nullable=True)

    # Classification
    source = Column(String(20), nullable=False, default=LeadSource.WEBSITE.value, index=True)
    status = Column(String(20), nullable=False, default=LeadStatus.NEW.value, index=True)
    priority = Column(String(10), nullable=False, default=LeadPriority.MEDIUM.value)
    lead_score = Column(Integer, nullable=False, default=0, index=True)

    # Assignment / follow-up
    assigned_to = Column(UUID(as_uuid=True), nullable=True, index=True)
    assigned_at = Column(DateTime, nullable=True)
    notes = Column(JSON, nullable=False, default=list)  # [{content, added_by, added_at, type}]
    next_follow_up_at = Column(DateTime, nullable=True, index=True)
    last_contacted_at = Column(DateTime, nullable=True)
    contact_attempts = Column(Integer, nullable=False, default=0)

    # Conversion
    converted_at = Column(DateTime, nullable=True)
    conversion_value = Column(Float, nullable=True)
    conversion_type = Column(String(20), nullable=True)

    # Tracking
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)
    referrer = Column(String(500), nullable=True)
    utm_source = Column(String(100), nullable=True)
    utm_medium = Column(String(100), nullable=True)
    utm_campaign = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)

    # Consent
    marketing_opt_in = Column(Boolean, nullable=False, default=False)
    data_processing_consent = Column(Boolean, nullable=False, default=True)
    consent_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Computed on read, never stored
    @property
    def days_since_creation(self) -> int:
        return lead_scoring.days_since(self.created_at)

    @property
    def age_category(self) -> str:
        return lead_scoring.age_category(self.created_at)

    @property
    def conversion_probability(self) -> int:
        return lead_scoring.conversion_probability(self)

    @property
    def contact_urgency(self) -> str:
        return lead_scoring.contact_urgency(self)


@event.listens_for(Lead, "before_insert")
@event.listens_for(Lead, "before_update")
def _recompute_lead_score(mapper, connection, target: Lead) -> None:
    target.lead_score = lead_scoring.compute_lead_score(target)
