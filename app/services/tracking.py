"""View/click counters.

Public reads schedule ``track_view`` as a FastAPI background task; it opens
its own session because the request session is closed by then. Counters are
bumped with a single ``UPDATE ... SET n = n + 1`` so concurrent hits are not
lost; derived columns (perk conversion rate) are recomputed afterwards.
"""

import logging
from typing import Type
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.attributes import flag_modified

from app.core.errors import AppError
from app.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


async def increment_counter(session: AsyncSession, model: Type, entity_id: UUID, field: str):
    """Add one to ``field`` on the row; returns the entity or None when it is gone."""
    repo = BaseRepository(session)
    repo.model = model
    if not await repo.increment(entity_id, field):
        return None

    entity = await repo.get_by_id(entity_id)
    # The identity map may still hold the pre-increment counts
    await session.refresh(entity)
    if hasattr(entity, "conversion_rate"):
        # Only conversion_rate is written; the model's before_update listener fills it in
        flag_modified(entity, "conversion_rate")
        entity = await repo.save(entity)
    return entity


async def track_view(session_factory: async_sessionmaker, model: Type, entity_id: UUID) -> None:
    """Fire-and-forget view tracking; failures are logged and dropped."""
    try:
        async with session_factory() as session:
            await increment_counter(session, model, entity_id, "view_count")
    except AppError as e:
        logger.warning("View tracking failed for %s %s: %s", model.__name__, entity_id, e.message)
