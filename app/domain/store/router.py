"""Store router - Merchandise catalog, cart, checkout and orders"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_staff
from ...database import get_db
from ...models import Profile
from .schemas import (
    CartAdd,
    CartQuantityUpdate,
    CartSummary,
    CheckoutRequest,
    MerchandiseCreate,
    MerchandiseResponse,
    MerchandiseUpdate,
    OrderResponse,
    OrderStatusUpdate,
)
from .service import StoreService

router = APIRouter(prefix="/store", tags=["Store"])


def get_store_service(db: Session = Depends(get_db)) -> StoreService:
    """Dependency injection for StoreService"""
    return StoreService(db)


# ============================================================================
# MERCHANDISE
# ============================================================================


@router.get("/merchandise", response_model=list[MerchandiseResponse])
async def list_merchandise(service: StoreService = Depends(get_store_service)):
    return service.list_merchandise()


@router.get("/merchandise/manage", response_model=list[MerchandiseResponse])
async def list_all_merchandise(
    _staff: Profile = Depends(require_staff),
    service: StoreService = Depends(get_store_service),
):
    return service.list_merchandise(include_inactive=True)


@router.post("/merchandise", response_model=MerchandiseResponse, status_code=201)
async def create_merchandise(
    data: MerchandiseCreate,
    _staff: Profile = Depends(require_staff),
    service: StoreService = Depends(get_store_service),
):
    return service.create_merchandise(data)


@router.patch("/merchandise/{merchandise_id}", response_model=MerchandiseResponse)
async def update_merchandise(
    merchandise_id: str,
    data: MerchandiseUpdate,
    _staff: Profile = Depends(require_staff),
    service: StoreService = Depends(get_store_service),
):
    return service.update_merchandise(merchandise_id, data)


@router.delete("/merchandise/{merchandise_id}")
async def delete_merchandise(
    merchandise_id: str,
    _staff: Profile = Depends(require_staff),
    service: StoreService = Depends(get_store_service),
):
    return service.delete_merchandise(merchandise_id)


# ============================================================================
# CART
# ============================================================================


@router.get("/cart", response_model=CartSummary)
async def get_cart(
    current_user: Profile = Depends(get_current_user),
    service: StoreService = Depends(get_store_service),
):
    return service.get_cart(current_user)


@router.post("/cart", response_model=CartSummary)
async def add_to_cart(
    data: CartAdd,
    current_user: Profile = Depends(get_current_user),
    service: StoreService = Depends(get_store_service),
):
    return service.add_to_cart(current_user, data.merchandise_id, data.quantity)


@router.patch("/cart/{item_id}", response_model=CartSummary)
async def set_cart_quantity(
    item_id: str,
    data: CartQuantityUpdate,
    current_user: Profile = Depends(get_current_user),
    service: StoreService = Depends(get_store_service),
):
    """A quantity below 1 removes the item"""
    return service.set_quantity(current_user, item_id, data.quantity)


@router.delete("/cart/{item_id}", response_model=CartSummary)
async def remove_from_cart(
    item_id: str,
    current_user: Profile = Depends(get_current_user),
    service: StoreService = Depends(get_store_service),
):
    return service.remove_from_cart(current_user, item_id)


@router.delete("/cart", response_model=CartSummary)
async def clear_cart(
    current_user: Profile = Depends(get_current_user),
    service: StoreService = Depends(get_store_service),
):
    return service.clear_cart(current_user)


# ============================================================================
# ORDERS
# ============================================================================


@router.post("/checkout", response_model=OrderResponse, status_code=201)
async def checkout(
    data: Optional[CheckoutRequest] = None,
    current_user: Profile = Depends(get_current_user),
    service: StoreService = Depends(get_store_service),
):
    """Turn the cart into a pending order; payment follows via /payments/checkout"""
    return service.checkout(current_user, data)


@router.get("/orders", response_model=list[OrderResponse])
async def list_my_orders(
    current_user: Profile = Depends(get_current_user),
    service: StoreService = Depends(get_store_service),
):
    return service.list_orders(user_id=current_user.id)


@router.get("/orders/all", response_model=list[OrderResponse])
async def list_all_orders(
    status: Optional[str] = Query(None),
    _staff: Profile = Depends(require_staff),
    service: StoreService = Depends(get_store_service),
):
    return service.list_orders(status=status)


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    current_user: Profile = Depends(get_current_user),
    service: StoreService = Depends(get_store_service),
):
    return service.get_order_for_user(order_id, current_user)


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    _staff: Profile = Depends(require_staff),
    service: StoreService = Depends(get_store_service),
):
    return service.update_order_status(order_id, data.status)
