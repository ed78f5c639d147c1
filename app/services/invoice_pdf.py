"""
Invoice PDF Generator
Builds a booking invoice with reportlab: header, bill-to, vehicle, services table,
VAT-inclusive totals and a payment badge
"""

import io
import logging
from datetime import datetime
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .. import config
from ..models import Booking

logger = logging.getLogger(__name__)


def invoice_number(booking_id: str) -> str:
    return booking_id[:8].upper()


def invoice_filename(booking_id: str) -> str:
    return f"RaceTechnik_Invoice_{invoice_number(booking_id)}.pdf"


def format_currency(amount: float) -> str:
    return f"R {amount:,.2f}"


def calculate_vat_breakdown(
    total: float, vat_rate: Optional[float] = None
) -> tuple[float, float, float]:
    """
    Split a VAT-inclusive total into (subtotal, vat, total).
    Prices in the catalog already include VAT.
    """
    rate = config.VAT_RATE if vat_rate is None else vat_rate
    total = round(float(total or 0), 2)
    subtotal = round(total / (1 + rate), 2)
    vat = round(total - subtotal, 2)
    return subtotal, vat, total


class InvoicePDFGenerator:
    """Generate booking invoice PDFs"""

    def __init__(self, booking: Booking):
        self.booking = booking
        self.customer = booking.user
        self.vehicle = booking.vehicle

        self.page_width, self.page_height = A4
        self.margin = 0.75 * inch

        self.brand_color = colors.HexColor("#dc2626")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f1f5f9")
        self.paid_color = colors.HexColor("#16a34a")
        self.pending_color = colors.HexColor("#d97706")

    def line_items(self) -> list[tuple[str, float]]:
        """Services on the booking; falls back to the primary service for single-service bookings"""
        items = [
            (bs.service.title if bs.service else "Service", float(bs.price or 0))
            for bs in self.booking.booking_services
        ]
        if not items and self.booking.service:
            items.append((self.booking.service.title, float(self.booking.payment_amount or 0)))
        return items

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        logger.info(f"📄 Generating invoice PDF for booking {self.booking.id}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"Invoice {invoice_number(self.booking.id)}",
        )

        story = []
        styles = getSampleStyleSheet()

        title_style = ParagraphStyle(
            "InvoiceTitle",
            parent=styles["Heading1"],
            fontSize=24,
            textColor=self.brand_color,
            spaceAfter=4,
        )
        tagline_style = ParagraphStyle(
            "Tagline",
            parent=styles["Normal"],
            fontSize=10,
            textColor=colors.grey,
            spaceAfter=12,
        )
        heading_style = ParagraphStyle(
            "InvoiceHeading",
            parent=styles["Heading2"],
            fontSize=12,
            textColor=self.dark_gray,
            spaceBefore=14,
            spaceAfter=6,
        )
        body_style = ParagraphStyle(
            "InvoiceBody",
            parent=styles["Normal"],
            fontSize=10,
            textColor=self.dark_gray,
            spaceAfter=4,
        )

        # Header
        story.append(Paragraph(config.BUSINESS_NAME, title_style))
        story.append(Paragraph(config.BUSINESS_TAGLINE, tagline_style))

        created = self.booking.created_at or datetime.utcnow()
        info_data = [
            ["Invoice #:", invoice_number(self.booking.id)],
            ["Invoice Date:", created.strftime("%d %B %Y")],
            [
                "Booking Date:",
                f"{self.booking.booking_date.strftime('%d %B %Y')} at {self.booking.booking_time}",
            ],
            ["Status:", self.booking.status.replace("_", " ").title()],
        ]
        info_table = Table(info_data, colWidths=[1.5 * inch, 4.5 * inch])
        info_table.setStyle(
            TableStyle(
                [
                    ("FONT", (0, 0), (0, -1), "Helvetica-Bold", 10),
                    ("FONT", (1, 0), (1, -1), "Helvetica", 10),
                    ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        story.append(info_table)

        # Bill to
        story.append(Paragraph("BILL TO", heading_style))
        story.append(Paragraph(self.customer.full_name or "Customer", body_style))
        if self.customer.phone:
            story.append(Paragraph(self.customer.phone, body_style))
        if self.customer.address:
            story.append(Paragraph(self.customer.address, body_style))

        # Vehicle
        if self.vehicle:
            story.append(Paragraph("VEHICLE", heading_style))
            year = f"{self.vehicle.year} " if self.vehicle.year else ""
            color = f" ({self.vehicle.color})" if self.vehicle.color else ""
            story.append(
                Paragraph(f"{year}{self.vehicle.make} {self.vehicle.model}{color}", body_style)
            )

        # Services
        story.append(Paragraph("SERVICES", heading_style))
        table_data = [["Service", "Price"]]
        for title, price in self.line_items():
            table_data.append([title, format_currency(price)])

        subtotal, vat, total = calculate_vat_breakdown(self.booking.payment_amount)
        vat_label = f"VAT ({int(round(config.VAT_RATE * 100))}%)"
        table_data.append(["Subtotal (excl. VAT)", format_currency(subtotal)])
        table_data.append([vat_label, format_currency(vat)])
        table_data.append(["TOTAL", format_currency(total)])

        totals_start = len(table_data) - 3
        services_table = Table(table_data, colWidths=[4.5 * inch, 1.5 * inch], repeatRows=1)
        services_table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 10),
                    ("FONT", (0, 1), (-1, -1), "Helvetica", 10),
                    ("TEXTCOLOR", (0, 1), (-1, -1), self.dark_gray),
                    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                    (
                        "ROWBACKGROUNDS",
                        (0, 1),
                        (-1, totals_start - 1),
                        [colors.white, self.light_gray],
                    ),
                    ("LINEABOVE", (0, totals_start), (-1, totals_start), 1, self.dark_gray),
                    ("FONT", (0, -1), (-1, -1), "Helvetica-Bold", 11),
                    ("LEFTPADDING", (0, 0), (-1, -1), 8),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 8),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        story.append(services_table)
        story.append(Spacer(1, 0.3 * inch))

        # Payment badge
        is_paid = self.booking.payment_status == "paid"
        badge = Table([["PAID" if is_paid else "PAYMENT PENDING"]], colWidths=[2.2 * inch])
        badge.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, -1), self.paid_color if is_paid else self.pending_color),
                    ("TEXTCOLOR", (0, 0), (-1, -1), colors.white),
                    ("FONT", (0, 0), (-1, -1), "Helvetica-Bold", 12),
                    ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                    ("TOPPADDING", (0, 0), (-1, -1), 8),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
                ]
            )
        )
        story.append(badge)

        # Footer
        story.append(Spacer(1, 0.5 * inch))
        story.append(
            Paragraph(
                f"<i>Thank you for choosing {config.BUSINESS_NAME.title()}. "
                f"Questions about this invoice? Contact {config.SUPPORT_EMAIL}</i>",
                ParagraphStyle(
                    "Footer",
                    parent=body_style,
                    fontSize=8,
                    textColor=colors.grey,
                    alignment=1,
                ),
            )
        )

        doc.build(story)

        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"✅ Generated invoice PDF ({len(pdf_bytes)} bytes)")
        return pdf_bytes
