"""Route handlers for the Web API."""

from portal.web.routes.admin import router as admin_router
from portal.web.routes.auth import router as auth_router
from portal.web.routes.categories import router as categories_router
from portal.web.routes.contents import router as contents_router
from portal.web.routes.files import router as files_router
from portal.web.routes.health import router as health_router
from portal.web.routes.navigation import router as navigation_router

__all__ = [
    "admin_router",
    "auth_router",
    "categories_router",
    "contents_router",
    "files_router",
    "health_router",
    "navigation_router",
]
