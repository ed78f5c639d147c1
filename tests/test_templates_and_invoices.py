import pytest

from app.models import Booking, BookingService as BookingLine, ProcessTemplate, ProcessTemplateStage
from app.services.invoice_pdf import (
    InvoicePDFGenerator,
    calculate_vat_breakdown,
    format_currency,
    invoice_filename,
)

from conftest import auth_headers, create_profile


def make_template(client, headers, **overrides):
    payload = {
        "name": "PPF Full Front",
        "stages": [
            {"stage_name": "Wash & Decon", "estimated_duration_minutes": 60},
            {"stage_name": "Paint Correction", "requires_photo": True},
            {"stage_name": "Film Install"},
        ],
    }
    payload.update(overrides)
    return client.post("/process-templates", json=payload, headers=headers)


# ============================================================================
# PROCESS TEMPLATES
# ============================================================================


def test_templates_require_staff(client, customer_headers):
    assert client.get("/process-templates", headers=customer_headers).status_code == 403


def test_create_template_orders_stages(client, staff_headers, staff_user, ppf_service):
    response = make_template(client, staff_headers, service_id=ppf_service.id)
    assert response.status_code == 201
    body = response.json()
    assert body["created_by"] == staff_user.id
    assert [(s["stage_name"], s["stage_order"]) for s in body["stages"]] == [
        ("Wash & Decon", 1),
        ("Paint Correction", 2),
        ("Film Install", 3),
    ]
    assert body["stages"][1]["requires_photo"] is True


def test_create_template_validation(client, staff_headers):
    assert make_template(client, staff_headers, name="  ").status_code == 422
    assert make_template(client, staff_headers, service_id="missing").status_code == 404


def test_only_one_default_template(client, db, staff_headers):
    first = make_template(client, staff_headers, name="Standard", is_default=True).json()
    second = make_template(client, staff_headers, name="Express", is_default=True).json()

    db.expire_all()
    defaults = db.query(ProcessTemplate).filter(ProcessTemplate.is_default.is_(True)).all()
    assert [t.id for t in defaults] == [second["id"]]

    client.patch(f"/process-templates/{first['id']}", json={"is_default": True}, headers=staff_headers)
    listed = client.get("/process-templates", headers=staff_headers).json()
    assert listed[0]["id"] == first["id"]
    assert [t["is_default"] for t in listed] == [True, False]


def test_filter_templates_by_service(client, staff_headers, ppf_service, tint_service):
    make_template(client, staff_headers, name="PPF", service_id=ppf_service.id)
    make_template(client, staff_headers, name="Tint", service_id=tint_service.id, stages=[])

    listed = client.get("/process-templates", params={"service_id": tint_service.id}, headers=staff_headers).json()
    assert [t["name"] for t in listed] == ["Tint"]
    assert listed[0]["stages"] == []


def test_stage_management(client, staff_headers):
    template = make_template(client, staff_headers).json()
    template_id = template["id"]

    added = client.post(
        f"/process-templates/{template_id}/stages",
        json={"stage_name": "Quality Check"},
        headers=staff_headers,
    )
    assert added.status_code == 201
    assert added.json()["stages"][-1]["stage_name"] == "Quality Check"
    assert added.json()["stages"][-1]["stage_order"] == 4

    install = template["stages"][2]
    renamed = client.patch(
        f"/process-templates/{template_id}/stages/{install['id']}",
        json={"stage_name": "PPF Install", "estimated_duration_minutes": 240},
        headers=staff_headers,
    )
    assert renamed.json()["stages"][2]["stage_name"] == "PPF Install"
    assert renamed.json()["stages"][2]["estimated_duration_minutes"] == 240

    wash = template["stages"][0]
    remaining = client.delete(f"/process-templates/{template_id}/stages/{wash['id']}", headers=staff_headers)
    assert [s["stage_name"] for s in remaining.json()["stages"]] == [
        "Paint Correction",
        "PPF Install",
        "Quality Check",
    ]

    missing = client.delete(f"/process-templates/{template_id}/stages/{wash['id']}", headers=staff_headers)
    assert missing.status_code == 404


def test_delete_template_removes_stages(client, db, staff_headers):
    template_id = make_template(client, staff_headers).json()["id"]

    assert client.delete(f"/process-templates/{template_id}", headers=staff_headers).json()["success"]
    assert client.get(f"/process-templates/{template_id}", headers=staff_headers).status_code == 404
    assert db.query(ProcessTemplateStage).count() == 0


# ============================================================================
# INVOICES
# ============================================================================


@pytest.fixture
def invoiced_booking(db, customer, vehicle, ppf_service, tint_service, next_week):
    booking = Booking(
        user_id=customer.id,
        service_id=ppf_service.id,
        vehicle_id=vehicle.id,
        booking_date=next_week,
        booking_time="08:00",
        status="confirmed",
        payment_amount=21700.0,
        payment_status="paid",
    )
    db.add(booking)
    db.flush()
    db.add_all(
        [
            BookingLine(booking_id=booking.id, service_id=ppf_service.id, price=18500.0),
            BookingLine(booking_id=booking.id, service_id=tint_service.id, price=3200.0),
        ]
    )
    db.commit()
    db.refresh(booking)
    return booking


def test_vat_breakdown_is_inclusive():
    assert calculate_vat_breakdown(1150) == (1000.0, 150.0, 1150.0)
    assert calculate_vat_breakdown(0) == (0.0, 0.0, 0.0)
    subtotal, vat, total = calculate_vat_breakdown(21700)
    assert round(subtotal + vat, 2) == total


def test_currency_and_filename():
    assert format_currency(18500) == "R 18,500.00"
    assert invoice_filename("abcdef12-0000") == "RaceTechnik_Invoice_ABCDEF12.pdf"


def test_line_items_fall_back_to_primary_service(db, customer, ppf_service, next_week):
    booking = Booking(
        user_id=customer.id,
        service_id=ppf_service.id,
        booking_date=next_week,
        booking_time="08:00",
        payment_amount=18500.0,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)

    assert InvoicePDFGenerator(booking).line_items() == [("Full Front PPF", 18500.0)]


def test_generate_pdf(invoiced_booking):
    generator = InvoicePDFGenerator(invoiced_booking)
    assert sorted(generator.line_items()) == [("Full Front PPF", 18500.0), ("Window Tint", 3200.0)]
    assert generator.generate().startswith(b"%PDF")


def test_download_invoice(client, customer_headers, invoiced_booking):
    response = client.get(f"/invoices/bookings/{invoiced_booking.id}/pdf", headers=customer_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    expected = invoice_filename(invoiced_booking.id)
    assert response.headers["content-disposition"] == f'attachment; filename="{expected}"'


def test_invoice_visible_to_staff_not_strangers(client, db, staff_headers, invoiced_booking):
    assert client.get(f"/invoices/bookings/{invoiced_booking.id}/pdf", headers=staff_headers).status_code == 200

    stranger = create_profile(db, "stranger@example.com")
    response = client.get(f"/invoices/bookings/{invoiced_booking.id}/pdf", headers=auth_headers(stranger))
    assert response.status_code == 404
