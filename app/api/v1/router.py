from fastapi import APIRouter
from app.api.v1.endpoints import auth, blog, blog_categories, categories, dashboard, leads, perks, seo, site

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(leads.router, prefix="/leads", tags=["leads"])
api_router.include_router(perks.router, prefix="/perks", tags=["perks"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(blog.router, prefix="/blog", tags=["blog"])
api_router.include_router(blog_categories.router, prefix="/blog-categories", tags=["blog-categories"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(seo.router, prefix="/seo", tags=["seo"])
api_router.include_router(site.router, prefix="/site", tags=["site"])
