"""OrderDesk API package."""

from orderdesk.api.routes import admin_router, install, menu_router, order_router, register_exception_handlers

__all__ = ["menu_router", "order_router", "admin_router", "register_exception_handlers", "install"]
