"""Inventory router - Staff stock management and admin low-stock alerts"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin, require_staff
from ...database import get_db
from ...models import Profile
from .schemas import (
    InventoryItemCreate,
    InventoryItemResponse,
    InventoryItemUpdate,
    StockAlertResult,
    TransactionCreate,
    TransactionResponse,
)
from .service import InventoryService, is_low_stock, send_low_stock_alerts

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def get_inventory_service(db: Session = Depends(get_db)) -> InventoryService:
    """Dependency injection for InventoryService"""
    return InventoryService(db)


def to_item_response(item) -> InventoryItemResponse:
    response = InventoryItemResponse.model_validate(item)
    response.is_low_stock = is_low_stock(item)
    return response


@router.get("", response_model=list[InventoryItemResponse])
async def list_items(
    category: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    _staff: Profile = Depends(require_staff),
    service: InventoryService = Depends(get_inventory_service),
):
    return [to_item_response(i) for i in service.list_items(category, include_inactive)]


@router.get("/low-stock", response_model=list[InventoryItemResponse])
async def list_low_stock(
    _staff: Profile = Depends(require_staff),
    service: InventoryService = Depends(get_inventory_service),
):
    return [to_item_response(i) for i in service.list_items(low_stock_only=True)]


@router.post("/alerts", response_model=StockAlertResult)
async def trigger_low_stock_alerts(
    _admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """WhatsApp managers and directors about items below minimum stock"""
    return await send_low_stock_alerts(db)


@router.post("", response_model=InventoryItemResponse, status_code=201)
async def create_item(
    data: InventoryItemCreate,
    staff: Profile = Depends(require_staff),
    service: InventoryService = Depends(get_inventory_service),
):
    return to_item_response(service.create_item(data, staff))


@router.get("/{item_id}", response_model=InventoryItemResponse)
async def get_item(
    item_id: str,
    _staff: Profile = Depends(require_staff),
    service: InventoryService = Depends(get_inventory_service),
):
    return to_item_response(service.get_item(item_id))


@router.patch("/{item_id}", response_model=InventoryItemResponse)
async def update_item(
    item_id: str,
    data: InventoryItemUpdate,
    _staff: Profile = Depends(require_staff),
    service: InventoryService = Depends(get_inventory_service),
):
    return to_item_response(service.update_item(item_id, data))


@router.delete("/{item_id}")
async def delete_item(
    item_id: str,
    _admin: Profile = Depends(require_admin),
    service: InventoryService = Depends(get_inventory_service),
):
    return service.delete_item(item_id)


@router.post("/{item_id}/transactions", response_model=InventoryItemResponse)
async def record_transaction(
    item_id: str,
    data: TransactionCreate,
    staff: Profile = Depends(require_staff),
    service: InventoryService = Depends(get_inventory_service),
):
    """Restock, usage or absolute adjustment"""
    return to_item_response(service.record_transaction(item_id, data, staff))


@router.get("/{item_id}/transactions", response_model=list[TransactionResponse])
async def list_transactions(
    item_id: str,
    _staff: Profile = Depends(require_staff),
    service: InventoryService = Depends(get_inventory_service),
):
    return service.list_transactions(item_id)
