from .admin import admin_router
from .join_requests import join_requests_router
from .private_messages import private_messages_router

__all__ = ["admin_router", "join_requests_router", "private_messages_router"]
