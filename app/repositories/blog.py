"""Blog post and blog category queries."""

from typing import Optional
from uuid import UUID

from sqlalchemy import and_, func, or_, select, case

from app.models.blog import BlogCategory, BlogCategoryStatus, BlogPost, PostStatus
from app.repositories.base import BaseRepository, PaginatedResult


def published_conditions() -> list:
    return [BlogPost.status == PostStatus.PUBLISHED.value, BlogPost.is_visible.is_(True)]


class BlogPostRepository(BaseRepository[BlogPost]):
    model = BlogPost

    async def find_page(
        self,
        status: Optional[str] = None,
        category_id: Optional[UUID] = None,
        search: Optional[str] = None,
        is_featured: Optional[bool] = None,
        published_only: bool = False,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> PaginatedResult[BlogPost]:
        conditions = published_conditions() if published_only else []
        if status and not published_only:
            conditions.append(BlogPost.status == status)
        if category_id:
            conditions.append(BlogPost.category_id == category_id)
        if is_featured is not None:
            conditions.append(BlogPost.is_featured.is_(is_featured))
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(
                BlogPost.title.ilike(pattern),
                BlogPost.excerpt.ilike(pattern),
                BlogPost.content.ilike(pattern),
            ))

        stmt = select(BlogPost)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        order = BlogPost.published_at.desc() if published_only else BlogPost.created_at.desc()
        return await self.paginate(stmt.order_by(order, BlogPost.created_at.desc()), page, limit)

    async def related(self, post: BlogPost, limit: int = 3) -> list[BlogPost]:
        conditions = [*published_conditions(), BlogPost.id != post.id]
        if post.category_id:
            conditions.append(BlogPost.category_id == post.category_id)
        return await self.find(*conditions, order_by=(BlogPost.published_at.desc(),), limit=limit)

    async def count_published_in(self, category_id: UUID) -> int:
        return await self.count(*published_conditions(), BlogPost.category_id == category_id)

    async def all_for_audit(self, status: Optional[str] = None) -> list[BlogPost]:
        conditions = [BlogPost.status == status] if status else []
        return await self.find(*conditions, order_by=(BlogPost.created_at.desc(),))

    async def duplicate_slugs(self) -> list[dict]:
        """Slugs shared by more than one post, ignoring numeric suffixes."""
        posts = await self.find(order_by=(BlogPost.slug.asc(),))
        groups: dict[str, list[BlogPost]] = {}
        for post in posts:
            base = post.slug
            head, _, tail = base.rpartition("-")
            if head and tail.isdigit():
                base = head
            groups.setdefault(base, []).append(post)

        return [
            {
                "slug": base,
                "count": len(members),
                "posts": [{"id": str(p.id), "title": p.title, "slug": p.slug} for p in members],
            }
            for base, members in groups.items()
            if len(members) > 1
        ]

    async def stats(self) -> dict:
        def _count_where(condition):
            return func.sum(case((condition, 1), else_=0))

        row = (await self._execute(select(
            func.count(BlogPost.id).label("total"),
            _count_where(BlogPost.status == PostStatus.PUBLISHED.value).label("published"),
            _count_where(BlogPost.status == PostStatus.DRAFT.value).label("draft"),
            _count_where(BlogPost.status == PostStatus.ARCHIVED.value).label("archived"),
            _count_where(BlogPost.is_featured.is_(True)).label("featured"),
            func.sum(BlogPost.view_count).label("total_views"),
            func.sum(BlogPost.share_count).label("total_shares"),
            func.sum(BlogPost.click_count).label("total_clicks"),
            func.avg(BlogPost.read_time).label("avg_read_time"),
        ))).one()

        return {
            "total": row.total or 0,
            "published": int(row.published or 0),
            "draft": int(row.draft or 0),
            "archived": int(row.archived or 0),
            "featured": int(row.featured or 0),
            "total_views": int(row.total_views or 0),
            "total_shares": int(row.total_shares or 0),
            "total_clicks": int(row.total_clicks or 0),
            "avg_read_time": round(float(row.avg_read_time or 0), 1),
        }


def public_category_conditions() -> list:
    return [BlogCategory.status == BlogCategoryStatus.ACTIVE.value, BlogCategory.is_visible.is_(True)]


_CATEGORY_ORDER = (BlogCategory.display_order.asc(), BlogCategory.name.asc())


class BlogCategoryRepository(BaseRepository[BlogCategory]):
    model = BlogCategory

    async def get_by_name(self, name: str) -> Optional[BlogCategory]:
        result = await self._execute(select(BlogCategory).where(func.lower(BlogCategory.name) == name.lower()))
        return result.scalars().first()

    async def find_page(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        public_only: bool = False,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> PaginatedResult[BlogCategory]:
        stmt = select(BlogCategory)
        if public_only:
            stmt = stmt.where(*public_category_conditions())
        elif status:
            stmt = stmt.where(BlogCategory.status == status)
        if search:
            stmt = stmt.where(BlogCategory.name.ilike(f"%{search}%"))
        return await self.paginate(stmt.order_by(*_CATEGORY_ORDER), page, limit)

    async def menu(self) -> list[BlogCategory]:
        return await self.find(*public_category_conditions(), BlogCategory.show_in_menu.is_(True), order_by=_CATEGORY_ORDER)

    async def featured(self, limit: int) -> list[BlogCategory]:
        return await self.find(
            *public_category_conditions(), BlogCategory.is_featured.is_(True),
            order_by=_CATEGORY_ORDER, limit=limit,
        )

    async def search(self, query: str, limit: int) -> list[BlogCategory]:
        pattern = f"%{query}%"
        return await self.find(
            *public_category_conditions(),
            or_(BlogCategory.name.ilike(pattern), BlogCategory.description.ilike(pattern)),
            order_by=_CATEGORY_ORDER,
            limit=limit,
        )
