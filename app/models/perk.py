"""Perk model: a vendor-supplied discount or offer listing.

Operational ``status`` (is the perk live?) and moderation ``approval_status``
(has it been reviewed?) are two independent state machines.
"""

import enum
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Column, String, Text, DateTime, Integer, Float, Boolean, event
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
from app.core.database import Base


class PerkStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    REJECTED = "rejected"
    EXPIRED = "expired"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_REVISION = "needs_revision"


class RedemptionMethod(str, enum.Enum):
    AFFILIATE_LINK = "affiliate_link"
    COUPON_CODE = "coupon_code"
    FORM_SUBMISSION = "form_submission"


class PerkLocation(str, enum.Enum):
    MALAYSIA = "Malaysia"
    SINGAPORE = "Singapore"
    GLOBAL = "Global"


class Perk(Base):
    __tablename__ = "perks"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    short_description = Column(String(300), nullable=True)
    description = Column(Text, nullable=True)

    # Vendor
    vendor_name = Column(String(200), nullable=False)
    vendor_email = Column(String(255), nullable=True)
    vendor_website = Column(String(500), nullable=True)
    vendor_description = Column(Text, nullable=True)
    vendor_logo = Column(JSON, nullable=True)  # {url, blob_name, filename, alt}

    # Images
    main_image = Column(JSON, nullable=True)
    gallery = Column(JSON, nullable=False, default=list)

    # Offer
    original_price = Column(Float, nullable=True)
    discounted_price = Column(Float, nullable=True)
    discount_percentage = Column(Float, nullable=True)
    redemption_method = Column(String(30), nullable=False, default=RedemptionMethod.AFFILIATE_LINK.value)
    affiliate_url = Column(String(1000), nullable=True)
    coupon_code = Column(String(100), nullable=True)
    location = Column(String(20), nullable=False, default=PerkLocation.GLOBAL.value)
    tags = Column(JSON, nullable=False, default=list)

    category_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    client_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    created_by = Column(UUID(as_uuid=True), nullable=True)
    updated_by = Column(UUID(as_uuid=True), nullable=True)

    # Lifecycle
    status = Column(String(20), nullable=False, default=PerkStatus.PENDING.value, index=True)
    approval_status = Column(String(20), nullable=False, default=ApprovalStatus.PENDING.value, index=True)
    reviewed_by = Column(UUID(as_uuid=True), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    approval_notes = Column(JSON, nullable=False, default=list)  # [{content, added_by, added_at}]

    is_visible = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False, index=True)
    is_exclusive = Column(Boolean, nullable=False, default=False)
    priority = Column(Integer, nullable=False, default=0)

    # Availability window / quantity cap
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True, index=True)
    total_quantity = Column(Integer, nullable=True)
    redeemed_quantity = Column(Integer, nullable=False, default=0)

    # Metrics
    view_count = Column(Integer, nullable=False, default=0)
    click_count = Column(Integer, nullable=False, default=0)
    redemption_count = Column(Integer, nullable=False, default=0)
    conversion_rate = Column(Float, nullable=False, default=0.0)

    seo = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def is_available_at(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        if self.status != PerkStatus.ACTIVE.value or not self.is_visible:
            return False
        if self.start_date and self.start_date > now:
            return False
        if self.end_date and self.end_date < now:
            return False
        if self.total_quantity is not None and (self.redeemed_quantity or 0) >= self.total_quantity:
            return False
        return True

    @property
    def is_available(self) -> bool:
        return self.is_available_at()

    def can_edit_seo(self, client_id) -> bool:
        return self.client_id is not None and client_id is not None and str(self.client_id) == str(client_id)


def calculate_conversion_rate(view_count: int | None, click_count: int | None) -> float:
    if not view_count:
        return 0.0
    return round((click_count or 0) / view_count * 100, 2)


@event.listens_for(Perk, "before_insert")
@event.listens_for(Perk, "before_update")
def _recompute_conversion_rate(mapper, connection, target: Perk) -> None:
    target.conversion_rate = calculate_conversion_rate(target.view_count, target.click_count)
