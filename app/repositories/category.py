"""Category queries, including hierarchy walks."""

from typing import Optional
from uuid import UUID

from sqlalchemy import or_, select

from app.models.category import Category, CategoryStatus
from app.repositories.base import BaseRepository, PaginatedResult

_ORDER = (Category.display_order.asc(), Category.name.asc())


def public_conditions() -> list:
    return [Category.status == CategoryStatus.ACTIVE.value, Category.is_visible.is_(True)]


class CategoryRepository(BaseRepository[Category]):
    model = Category

    async def find_page(
        self,
        status: Optional[str] = None,
        parent_id: Optional[UUID] = None,
        level: Optional[int] = None,
        search: Optional[str] = None,
        public_only: bool = False,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> PaginatedResult[Category]:
        stmt = select(Category)
        if public_only:
            stmt = stmt.where(*public_conditions())
        elif status:
            stmt = stmt.where(Category.status == status)
        if parent_id:
            stmt = stmt.where(Category.parent_id == parent_id)
        if level is not None:
            stmt = stmt.where(Category.level == level)
        if search:
            stmt = stmt.where(Category.name.ilike(f"%{search}%"))
        return await self.paginate(stmt.order_by(*_ORDER), page, limit)

    async def all_public(self) -> list[Category]:
        return await self.find(*public_conditions(), order_by=_ORDER)

    async def children(self, parent_id: UUID, public_only: bool = False) -> list[Category]:
        conditions = [Category.parent_id == parent_id]
        if public_only:
            conditions.extend(public_conditions())
        return await self.find(*conditions, order_by=_ORDER)

    async def roots(self, public_only: bool = False) -> list[Category]:
        conditions = [Category.parent_id.is_(None)]
        if public_only:
            conditions.extend(public_conditions())
        return await self.find(*conditions, order_by=_ORDER)

    async def menu(self) -> list[Category]:
        return await self.find(*public_conditions(), Category.show_in_menu.is_(True), order_by=_ORDER)

    async def filters(self) -> list[Category]:
        return await self.find(
            *public_conditions(),
            Category.show_in_filter.is_(True),
            Category.perk_count > 0,
            order_by=_ORDER,
        )

    async def featured(self, limit: int) -> list[Category]:
        return await self.find(*public_conditions(), Category.is_featured.is_(True), order_by=_ORDER, limit=limit)

    async def search(self, query: str, limit: int) -> list[Category]:
        pattern = f"%{query}%"
        return await self.find(
            *public_conditions(),
            or_(Category.name.ilike(pattern), Category.description.ilike(pattern)),
            order_by=_ORDER,
            limit=limit,
        )

    async def ancestors(self, category: Category) -> list[Category]:
        """Ancestors from the root down to the direct parent."""
        chain: list[Category] = []
        seen = {category.id}
        parent_id = category.parent_id
        while parent_id is not None and parent_id not in seen:
            parent = await self.get_by_id(parent_id)
            if parent is None:
                break
            chain.append(parent)
            seen.add(parent.id)
            parent_id = parent.parent_id
        return list(reversed(chain))

    async def descendant_ids(self, category_id: UUID) -> list[UUID]:
        """Breadth-first walk of the subtree, excluding ``category_id`` itself."""
        found: list[UUID] = []
        frontier = [category_id]
        while frontier:
            result = await self._execute(select(Category.id).where(Category.parent_id.in_(frontier)))
            frontier = [row_id for row_id in result.scalars().all() if row_id not in found]
            found.extend(frontier)
        return found
