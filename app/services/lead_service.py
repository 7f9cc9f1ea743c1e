"""Lead capture and pipeline management."""

import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.lead import Lead, LeadStatus, NoteType
from app.repositories.base import PaginatedResult
from app.repositories.category import CategoryRepository
from app.repositories.lead import LeadFilters, LeadRepository
from app.repositories.perk import PerkRepository
from app.schemas.lead import LeadBulkFields, LeadConvert, LeadCreate, LeadUpdate
from app.services.email_service import email_service
from app.utils.best_effort import best_effort

logger = logging.getLogger(__name__)

HIGH_VALUE_SCORE = 70
MIN_SEARCH_LENGTH = 2


def make_note(content: str, added_by: Optional[UUID], note_type: NoteType | str = NoteType.GENERAL) -> dict:
    return {
        "content": content,
        "added_by": str(added_by) if added_by else None,
        "added_at": datetime.utcnow().isoformat(),
        "type": NoteType(note_type).value,
    }


class LeadService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.leads = LeadRepository(db)

    async def submit(self, data: LeadCreate, tracking: Optional[dict] = None) -> Lead:
        """Create a lead from a public form submission.

        One submission per (email, perk). The perk title and category name
        are copied onto the lead. Notification e-mails never fail the request.
        """
        email = data.email.lower()

        if data.perk_id and await self.leads.find_by_email_and_perk(email, data.perk_id):
            raise ConflictError(
                "A lead has already been submitted for this perk with this email address",
                "DUPLICATE_SUBMISSION",
            )

        fields = data.model_dump(mode="python")
        fields["email"] = email
        fields.update({k: v for k, v in (tracking or {}).items() if v})

        category_id = data.category_id
        if data.perk_id:
            perk = await PerkRepository(self.db).get_by_id(data.perk_id)
            if perk:
                fields["perk_title"] = perk.title
                category_id = category_id or perk.category_id
        if category_id:
            category = await CategoryRepository(self.db).get_by_id(category_id)
            if category:
                fields["category_id"] = category.id
                fields["category_name"] = category.name

        fields["status"] = LeadStatus.NEW.value
        fields["consent_date"] = datetime.utcnow()
        lead = await self.leads.create(**fields)
        logger.info("Lead submitted: %s (%s) score=%d perk=%s", lead.id, lead.email, lead.lead_score, lead.perk_id)

        await best_effort("lead admin notification", email_service.send_lead_notification(lead), lead_id=str(lead.id))
        if lead.marketing_opt_in:
            await best_effort("lead confirmation", email_service.send_lead_confirmation(lead), lead_id=str(lead.id))

        return lead

    async def get(self, lead_id: UUID) -> Lead:
        lead = await self.leads.get_by_id(lead_id)
        if not lead:
            raise NotFoundError("Lead not found", "LEAD_NOT_FOUND")
        return lead

    async def list_leads(
        self,
        filters: LeadFilters,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
    ) -> PaginatedResult[Lead]:
        return await self.leads.find_page(filters, page, limit, sort_by)

    async def search(self, query: str, filters: LeadFilters, page: Optional[int], limit: Optional[int]):
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_LENGTH:
            raise ValidationError(
                "Search query must be at least 2 characters long",
                [{"field": "q", "message": "Too short"}],
                code="INVALID_SEARCH_QUERY",
            )
        filters.search = query
        return await self.leads.find_page(filters, page, limit)

    async def update(self, lead_id: UUID, data: LeadUpdate) -> Lead:
        lead = await self.get(lead_id)
        changes = data.model_dump(exclude_unset=True, mode="python")
        if "email" in changes and changes["email"]:
            changes["email"] = changes["email"].lower()
        if changes.get("status") == LeadStatus.CONVERTED.value and lead.status != LeadStatus.CONVERTED.value:
            changes["converted_at"] = datetime.utcnow()
        return await self.leads.update(lead, **changes)

    async def delete(self, lead_id: UUID) -> None:
        lead = await self.get(lead_id)
        await self.leads.delete(lead)
        logger.info("Lead deleted: %s", lead_id)

    async def add_note(self, lead_id: UUID, content: str, note_type: NoteType | str, user_id: Optional[UUID]) -> Lead:
        lead = await self.get(lead_id)
        # Reassign rather than append so the JSON column is flagged dirty
        lead.notes = [*(lead.notes or []), make_note(content, user_id, note_type)]
        return await self.leads.save(lead)

    async def assign(self, lead_id: UUID, assignee_id: UUID) -> Lead:
        lead = await self.get(lead_id)
        lead = await self.leads.update(lead, assigned_to=assignee_id, assigned_at=datetime.utcnow())
        logger.info("Lead %s assigned to %s", lead_id, assignee_id)
        return lead

    async def update_status(
        self, lead_id: UUID, status: LeadStatus | str, user_id: Optional[UUID], note: Optional[str] = None
    ) -> Lead:
        lead = await self.get(lead_id)
        status = LeadStatus(status)
        if status == LeadStatus.CONVERTED and lead.status != LeadStatus.CONVERTED.value:
            lead.converted_at = datetime.utcnow()
        lead.status = status.value
        if note:
            lead.notes = [*(lead.notes or []), make_note(note, user_id)]
        return await self.leads.save(lead)

    async def schedule_follow_up(
        self, lead_id: UUID, follow_up_at: datetime, user_id: Optional[UUID], note: Optional[str] = None
    ) -> Lead:
        lead = await self.get(lead_id)
        lead.next_follow_up_at = follow_up_at
        if note:
            lead.notes = [*(lead.notes or []), make_note(note, user_id, NoteType.FOLLOW_UP)]
        return await self.leads.save(lead)

    async def record_contact_attempt(self, lead_id: UUID, user_id: Optional[UUID], note: Optional[str] = None) -> Lead:
        lead = await self.get(lead_id)
        lead.contact_attempts = (lead.contact_attempts or 0) + 1
        lead.last_contacted_at = datetime.utcnow()
        if note:
            lead.notes = [*(lead.notes or []), make_note(note, user_id, NoteType.CALL)]
        return await self.leads.save(lead)

    async def convert(self, lead_id: UUID, data: LeadConvert) -> Lead:
        lead = await self.get(lead_id)
        lead = await self.leads.update(
            lead,
            status=LeadStatus.CONVERTED.value,
            converted_at=datetime.utcnow(),
            conversion_value=data.conversion_value,
            conversion_type=data.conversion_type,
        )
        logger.info("Lead converted: %s value=%s", lead_id, data.conversion_value)
        return lead

    async def bulk_update(self, lead_ids: list[UUID], updates: LeadBulkFields) -> int:
        fields = updates.model_dump(exclude_none=True, mode="python")
        if not fields:
            raise ValidationError("No fields to update", [{"field": "updates", "message": "Empty"}])
        if fields.get("assigned_to"):
            fields["assigned_at"] = datetime.utcnow()
        if fields.get("status") == LeadStatus.CONVERTED.value:
            fields["converted_at"] = datetime.utcnow()
        updated = await self.leads.bulk_update(lead_ids, fields)
        logger.info("Bulk-updated %d leads", updated)
        return updated

    async def recent(self, days: int = 7, limit: int = 20) -> list[Lead]:
        return await self.leads.recent(days, limit)

    async def stats(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
        stats = await self.leads.stats(start, end)
        total = stats["total"]
        stats["conversion_rate"] = round(stats["converted"] / total * 100, 2) if total else 0.0
        week_ago = datetime.utcnow() - timedelta(days=7)
        stats["new_this_week"] = await self.leads.count(Lead.created_at >= week_ago)
        stats["needs_follow_up"] = await self.leads.count(
            Lead.next_follow_up_at <= datetime.utcnow(),
            Lead.status.notin_([LeadStatus.CONVERTED.value, LeadStatus.CLOSED.value]),
        )
        return stats

    async def funnel(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
        return await self.leads.funnel(start, end)

    async def sources(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
        return await self.leads.sources(start, end)

    async def daily_analytics(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
        return await self.leads.daily(start, end)
