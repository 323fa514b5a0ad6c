"""API routes package.

Routers are organized by domain:

- health: Health check endpoints
- checkout: Event and product checkout
- webhooks: Stripe webhook receiver
- success: Success page (HTML) and session verification (JSON)
- orders: Order status lookup

All API routers are registered in main.py with /api prefix; the HTML
success page is served at the root.
"""

from commerce_api.routes.checkout import router as checkout_router
from commerce_api.routes.health import router as health_router
from commerce_api.routes.orders import router as orders_router
from commerce_api.routes.success import page_router as success_page_router
from commerce_api.routes.success import router as session_router
from commerce_api.routes.webhooks import router as webhooks_router

__all__ = [
    "checkout_router",
    "health_router",
    "orders_router",
    "session_router",
    "success_page_router",
    "webhooks_router",
]
