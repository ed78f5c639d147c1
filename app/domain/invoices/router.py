"""Invoices router - Downloadable booking invoices"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Profile
from ...services.invoice_pdf import InvoicePDFGenerator, invoice_filename
from ..bookings.service import BookingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.get("/bookings/{booking_id}/pdf")
async def download_booking_invoice(
    booking_id: str,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Invoice for a booking, available to its owner and to staff"""
    booking = BookingsService(db).get_booking_for_user(booking_id, current_user)

    try:
        pdf_bytes = InvoicePDFGenerator(booking).generate()
    except Exception as e:
        logger.error(f"❌ Failed to generate invoice for booking {booking_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate invoice") from e

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{invoice_filename(booking.id)}"'},
    )
