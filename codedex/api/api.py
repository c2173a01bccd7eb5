from fastapi import APIRouter

from .endpoints import (
    admin_content_router,
    admin_course_router,
    admin_user_router,
    auth_router,
    catalog_router,
    progress_router,
    user_router,
)

api_router = APIRouter()

api_router.include_router(auth_router.router, prefix="/auth", tags=["Auth"])
api_router.include_router(progress_router.router, prefix="/progress", tags=["Progress"])
api_router.include_router(user_router.router, prefix="/user", tags=["User"])
api_router.include_router(catalog_router.router, tags=["Catalog"])
api_router.include_router(admin_user_router.promote_router, prefix="/admin", tags=["Admin"])
api_router.include_router(admin_user_router.router, prefix="/admin", tags=["Admin"])
api_router.include_router(admin_course_router.router, prefix="/admin", tags=["Admin"])
api_router.include_router(admin_content_router.router, prefix="/admin", tags=["Admin"])
