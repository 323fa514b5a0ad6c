"""Order status endpoint."""

from fastapi import APIRouter, Depends

from commerce.models.errors import CheckoutError, ErrorCode
from commerce.services.order_store import OrderStore
from commerce_api.dependencies import get_order_store
from commerce_api.models.checkout import OrderStatusResponse
from commerce_api.models.common import ErrorResponse

router = APIRouter(tags=["orders"])


@router.get(
    "/orders/{order_id}",
    summary="Get order status",
    description="Look up a registration or purchase by its order id.",
    response_model=OrderStatusResponse,
    response_model_exclude_none=True,
    responses={404: {"description": "Order not found", "model": ErrorResponse}},
)
async def get_order(
    order_id: str,
    orders: OrderStore = Depends(get_order_store),
) -> OrderStatusResponse:
    """Return the current status of an order."""
    order = orders.get_order(order_id.strip().upper())
    if order is None:
        raise CheckoutError(ErrorCode.ORDER_NOT_FOUND, {"order_id": order_id})
    return OrderStatusResponse.from_order(order)
