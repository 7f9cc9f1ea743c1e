"""Pydantic schemas for Leads."""

from datetime import datetime
from uuid import UUID
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.models.lead import (
    BudgetRange,
    CompanySize,
    ContactMethod,
    ConversionType,
    Currency,
    LeadPriority,
    LeadSource,
    LeadStatus,
    NoteType,
    Timeline,
)
from app.schemas.common import InputModel, NaiveDatetime


class LeadCreate(InputModel):
    """Public form submission."""
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    company_name: Optional[str] = Field(None, max_length=200)
    company_website: Optional[str] = Field(None, max_length=500)
    company_size: CompanySize = CompanySize.NOT_SPECIFIED
    job_title: Optional[str] = Field(None, max_length=100)
    message: Optional[str] = Field(None, max_length=2000)
    interests: list[str] = []
    budget_range: BudgetRange = BudgetRange.NOT_SPECIFIED
    budget_currency: Currency = Currency.USD
    timeline: Timeline = Timeline.FLEXIBLE
    preferred_contact_method: ContactMethod = ContactMethod.EMAIL
    perk_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    source: LeadSource = LeadSource.WEBSITE
    utm_source: Optional[str] = Field(None, max_length=100)
    utm_medium: Optional[str] = Field(None, max_length=100)
    utm_campaign: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    marketing_opt_in: bool = False
    data_processing_consent: bool = True


class LeadUpdate(InputModel):
    """Admin edit; only the fields sent are changed."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    company_name: Optional[str] = Field(None, max_length=200)
    company_website: Optional[str] = Field(None, max_length=500)
    company_size: Optional[CompanySize] = None
    job_title: Optional[str] = Field(None, max_length=100)
    message: Optional[str] = Field(None, max_length=2000)
    interests: Optional[list[str]] = None
    budget_range: Optional[BudgetRange] = None
    budget_currency: Optional[Currency] = None
    timeline: Optional[Timeline] = None
    preferred_contact_method: Optional[ContactMethod] = None
    source: Optional[LeadSource] = None
    status: Optional[LeadStatus] = None
    priority: Optional[LeadPriority] = None
    next_follow_up_at: Optional[NaiveDatetime] = None
    country: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    marketing_opt_in: Optional[bool] = None


class LeadNote(BaseModel):
    content: str
    added_by: Optional[UUID] = None
    added_at: datetime
    type: NoteType = NoteType.GENERAL


class LeadOut(BaseModel):
    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    company_name: Optional[str] = None
    company_website: Optional[str] = None
    company_size: str
    job_title: Optional[str] = None
    message: Optional[str] = None
    interests: list[str] = []
    budget_range: str
    budget_currency: str
    timeline: str
    preferred_contact_method: str
    perk_id: Optional[UUID] = None
    perk_title: Optional[str] = None
    category_id: Optional[UUID] = None
    category_name: Optional[str] = None
    source: str
    status: str
    priority: str
    lead_score: int
    assigned_to: Optional[UUID] = None
    assigned_at: Optional[datetime] = None
    notes: list[LeadNote] = []
    next_follow_up_at: Optional[datetime] = None
    last_contacted_at: Optional[datetime] = None
    contact_attempts: int = 0
    converted_at: Optional[datetime] = None
    conversion_value: Optional[float] = None
    conversion_type: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    marketing_opt_in: bool = False
    data_processing_consent: bool = True
    consent_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    # Derived on read
    days_since_creation: int
    age_category: str
    conversion_probability: int
    contact_urgency: str

    class Config:
        from_attributes = True


class LeadStatusUpdate(InputModel):
    status: LeadStatus
    note: Optional[str] = Field(None, max_length=1000)


class LeadAssign(BaseModel):
    assigned_to: UUID


class LeadNoteCreate(InputModel):
    content: str = Field(..., min_length=1, max_length=1000)
    type: NoteType = NoteType.GENERAL


class LeadFollowUp(BaseModel):
    follow_up_at: NaiveDatetime
    note: Optional[str] = Field(None, max_length=1000)


class LeadContactAttempt(BaseModel):
    note: Optional[str] = Field(None, max_length=1000)


class LeadConvert(InputModel):
    conversion_value: Optional[float] = Field(None, ge=0)
    conversion_type: ConversionType = ConversionType.OTHER


class LeadBulkFields(InputModel):
    status: Optional[LeadStatus] = None
    priority: Optional[LeadPriority] = None
    assigned_to: Optional[UUID] = None


class LeadBulkUpdate(BaseModel):
    lead_ids: list[UUID] = Field(..., min_length=1, max_length=100)
    updates: LeadBulkFields
