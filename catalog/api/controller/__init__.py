"""HTTP controllers."""

from catalog.api.controller.product_controller import router as product_router
from catalog.api.controller.user_controller import router as user_router

__all__ = ["product_router", "user_router"]
