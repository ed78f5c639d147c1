from datetime import date, timedelta

from conftest import auth_headers, create_profile

from app.domain.bookings.stages import DEFAULT_STAGES, validate_status_transition
from app.models import Booking, BookingAuditLog, ProcessTemplate, ProcessTemplateStage
from app.models_notifications import Notification


def book(client, headers, vehicle, services, day, time="10:00 AM"):
    return client.post(
        "/bookings",
        json={
            "service_ids": [s.id for s in services],
            "vehicle_id": vehicle.id,
            "booking_date": day.isoformat(),
            "booking_time": time,
        },
        headers=headers,
    )


def test_status_transitions():
    assert validate_status_transition("pending", "confirmed")
    assert validate_status_transition("confirmed", "in_progress")
    assert validate_status_transition("in_progress", "completed")
    assert validate_status_transition("pending", "cancelled")
    assert not validate_status_transition("pending", "completed")
    assert not validate_status_transition("pending", "in_progress")
    assert not validate_status_transition("completed", "in_progress")
    assert not validate_status_transition("cancelled", "confirmed")


def test_create_booking_totals_services_and_seeds_stages(
    client, customer_headers, vehicle, ppf_service, tint_service, next_week
):
    response = book(client, customer_headers, vehicle, [ppf_service, tint_service], next_week)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["payment_status"] == "pending"
    assert data["payment_amount"] == 21700.0
    assert data["service_id"] == ppf_service.id
    assert [s["title"] for s in data["services"]] == ["Full Front PPF", "Window Tint"]
    assert [s["stage"] for s in data["stages"]] == [key for key, _ in DEFAULT_STAGES]
    assert all(not s["completed"] for s in data["stages"])


def test_create_booking_in_test_mode_is_confirmed_and_paid(
    client, customer_headers, vehicle, ppf_service, next_week, monkeypatch
):
    monkeypatch.setattr("app.config.YOCO_TEST_MODE", True)

    response = book(client, customer_headers, vehicle, [ppf_service], next_week)

    assert response.status_code == 201
    assert response.json()["status"] == "confirmed"
    assert response.json()["payment_status"] == "paid"


def test_create_booking_notifies_staff(
    client, db, customer_headers, staff_user, vehicle, ppf_service, next_week
):
    book(client, customer_headers, vehicle, [ppf_service], next_week)

    notes = db.query(Notification).filter(Notification.recipient_uid == staff_user.id).all()
    assert len(notes) == 1
    assert notes[0].type == "new_booking"
    assert "Full Front PPF" in notes[0].message


def test_create_booking_rejects_bad_input(
    client, customer_headers, vehicle, ppf_service, next_week
):
    assert book(client, customer_headers, vehicle, [ppf_service], next_week, "08:15 AM").status_code == 400

    yesterday = date.today() - timedelta(days=1)
    assert book(client, customer_headers, vehicle, [ppf_service], yesterday).status_code == 400

    response = client.post(
        "/bookings",
        json={
            "service_ids": [],
            "vehicle_id": vehicle.id,
            "booking_date": next_week.isoformat(),
            "booking_time": "10:00 AM",
        },
        headers=customer_headers,
    )
    assert response.status_code == 422


def test_create_booking_requires_own_vehicle(
    client, staff_headers, vehicle, ppf_service, next_week
):
    response = book(client, staff_headers, vehicle, [ppf_service], next_week)
    assert response.status_code == 404


def test_full_day_is_rejected(client, customer_headers, vehicle, ppf_service, next_week):
    # PPF allows two jobs per day
    assert book(client, customer_headers, vehicle, [ppf_service], next_week).status_code == 201
    assert book(client, customer_headers, vehicle, [ppf_service], next_week, "01:00 PM").status_code == 201

    response = book(client, customer_headers, vehicle, [ppf_service], next_week, "02:00 PM")
    assert response.status_code == 409


def test_cancelled_bookings_free_capacity(client, customer_headers, vehicle, ppf_service, next_week):
    first = book(client, customer_headers, vehicle, [ppf_service], next_week).json()
    book(client, customer_headers, vehicle, [ppf_service], next_week)

    assert client.post(f"/bookings/{first['id']}/cancel", headers=customer_headers).status_code == 200
    assert book(client, customer_headers, vehicle, [ppf_service], next_week).status_code == 201


def test_template_stages_are_used_when_service_has_template(
    client, db, customer_headers, vehicle, ppf_service, next_week
):
    template = ProcessTemplate(name="PPF flow", service_id=ppf_service.id)
    template.stages = [
        ProcessTemplateStage(stage_name="Wash & Decon", stage_order=1),
        ProcessTemplateStage(stage_name="Film Install", stage_order=2),
    ]
    db.add(template)
    db.commit()

    data = book(client, customer_headers, vehicle, [ppf_service], next_week).json()

    assert [(s["stage"], s["stage_name"]) for s in data["stages"]] == [
        ("wash_decon", "Wash & Decon"),
        ("film_install", "Film Install"),
    ]


def test_default_template_applies_when_service_has_none(
    client, db, customer_headers, vehicle, tint_service, next_week
):
    template = ProcessTemplate(name="Workshop standard", is_default=True)
    template.stages = [
        ProcessTemplateStage(stage_name="Check-In", stage_order=1),
        ProcessTemplateStage(stage_name="Handover", stage_order=2),
    ]
    db.add(template)
    db.commit()

    data = book(client, customer_headers, vehicle, [tint_service], next_week).json()

    assert [s["stage_name"] for s in data["stages"]] == ["Check-In", "Handover"]


def test_inactive_service_template_falls_back_to_default(
    client, db, customer_headers, vehicle, ppf_service, next_week
):
    retired = ProcessTemplate(name="Old PPF flow", service_id=ppf_service.id, is_active=False)
    retired.stages = [ProcessTemplateStage(stage_name="Legacy Step", stage_order=1)]
    default = ProcessTemplate(name="Workshop standard", is_default=True)
    default.stages = [
        ProcessTemplateStage(stage_name="Check-In", stage_order=1),
        ProcessTemplateStage(stage_name="Handover", stage_order=2),
    ]
    db.add_all([retired, default])
    db.commit()

    data = book(client, customer_headers, vehicle, [ppf_service], next_week).json()

    assert [(s["stage"], s["stage_name"]) for s in data["stages"]] == [
        ("check_in", "Check-In"),
        ("handover", "Handover"),
    ]


def test_customers_only_see_their_own_bookings(
    client, db, customer_headers, vehicle, ppf_service, next_week
):
    booking = book(client, customer_headers, vehicle, [ppf_service], next_week).json()
    other = create_profile(db, "other@example.com")

    assert client.get(f"/bookings/{booking['id']}", headers=auth_headers(other)).status_code == 404
    assert client.get("/bookings", headers=auth_headers(other)).json() == []
    assert len(client.get("/bookings", headers=customer_headers).json()) == 1
    assert client.get("/bookings/all", headers=customer_headers).status_code == 403


def test_cancel_only_from_pending_or_confirmed(
    client, customer_headers, vehicle, ppf_service, next_week
):
    booking = book(client, customer_headers, vehicle, [ppf_service], next_week).json()

    response = client.post(f"/bookings/{booking['id']}/cancel", headers=customer_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    response = client.post(f"/bookings/{booking['id']}/cancel", headers=customer_headers)
    assert response.status_code == 400


def test_staff_status_update_validates_and_notifies(
    client, db, customer, customer_headers, staff_headers, vehicle, ppf_service, next_week
):
    booking = book(client, customer_headers, vehicle, [ppf_service], next_week).json()
    url = f"/bookings/{booking['id']}/status"

    assert client.patch(url, json={"status": "completed"}, headers=staff_headers).status_code == 400
    assert client.patch(url, json={"status": "in_progress"}, headers=staff_headers).status_code == 400
    assert client.patch(url, json={"status": "bogus"}, headers=staff_headers).status_code == 422
    assert client.patch(url, json={"status": "confirmed"}, headers=customer_headers).status_code == 403

    response = client.patch(url, json={"status": "confirmed"}, headers=staff_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"

    notes = db.query(Notification).filter(Notification.recipient_uid == customer.id).all()
    assert [n.type for n in notes] == ["booking_confirmed"]

    audit = client.get(f"/bookings/{booking['id']}/audit", headers=staff_headers).json()
    assert {entry["action"] for entry in audit} == {"created", "status_change"}


def test_stage_flow_moves_booking_to_completed(
    client, db, customer, customer_headers, staff_user, staff_headers, vehicle, ppf_service, next_week
):
    booking = book(client, customer_headers, vehicle, [ppf_service], next_week).json()
    stages = booking["stages"]
    base = f"/bookings/{booking['id']}/stages"

    started = client.post(f"{base}/{stages[0]['id']}/start", headers=staff_headers).json()
    assert started["status"] == "in_progress"
    assert started["current_stage"] == "vehicle_checkin"
    assert started["stages"][0]["assigned_to"] == staff_user.id

    for stage in stages[:-1]:
        response = client.post(f"{base}/{stage['id']}/complete", headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

    tracking = client.get(f"/bookings/{booking['id']}/tracking", headers=customer_headers).json()
    assert tracking["progress"] == 90
    assert tracking["completed_stages"] == 9
    assert tracking["total_stages"] == 10
    assert tracking["current_stage_name"] == "Delivery Prep + Customer Pickup"
    assert tracking["vehicle"] == "2023 Porsche 911 GT3"

    last = client.post(
        f"{base}/{stages[-1]['id']}/complete", json={"notes": "Keys handed over"}, headers=staff_headers
    ).json()
    assert last["status"] == "completed"
    assert last["stages"][-1]["notes"] == "Keys handed over"

    types = {n.type for n in db.query(Notification).filter(Notification.recipient_uid == customer.id)}
    assert {"stage_started", "stage_completed", "ready_for_pickup"} <= types

    # Finished jobs are locked
    response = client.post(f"{base}/{stages[0]['id']}/start", headers=staff_headers)
    assert response.status_code == 400


def test_completing_a_stage_twice_is_rejected(
    client, customer_headers, staff_headers, vehicle, ppf_service, next_week
):
    booking = book(client, customer_headers, vehicle, [ppf_service], next_week).json()
    url = f"/bookings/{booking['id']}/stages/{booking['stages'][0]['id']}/complete"

    assert client.post(url, headers=staff_headers).status_code == 200
    assert client.post(url, headers=staff_headers).status_code == 400


def test_completing_an_unstarted_stage_audits_the_status_change(
    client, db, customer_headers, staff_headers, vehicle, ppf_service, next_week
):
    booking = book(client, customer_headers, vehicle, [ppf_service], next_week).json()
    stage_id = booking["stages"][0]["id"]

    response = client.post(f"/bookings/{booking['id']}/stages/{stage_id}/complete", headers=staff_headers)
    assert response.json()["status"] == "in_progress"

    changes = (
        db.query(BookingAuditLog)
        .filter(BookingAuditLog.booking_id == booking["id"], BookingAuditLog.action == "status_change")
        .all()
    )
    assert len(changes) == 1
    assert changes[0].old_values == {"status": "pending"}
    assert changes[0].new_values == {"status": "in_progress"}
    assert changes[0].stage_id == stage_id


def test_assign_stage_requires_staff_assignee(
    client, customer, customer_headers, staff_user, staff_headers, vehicle, ppf_service, next_week
):
    booking = book(client, customer_headers, vehicle, [ppf_service], next_week).json()
    url = f"/bookings/{booking['id']}/stages/{booking['stages'][0]['id']}/assign"

    assert client.patch(url, json={"assigned_to": customer.id}, headers=staff_headers).status_code == 400

    response = client.patch(url, json={"assigned_to": staff_user.id}, headers=staff_headers)
    assert response.status_code == 200
    assert response.json()["stages"][0]["assigned_to"] == staff_user.id


def test_work_queue_orders_by_priority_and_filters(
    client, customer_headers, staff_user, staff_headers, vehicle, ppf_service, tint_service, next_week
):
    normal = book(client, customer_headers, vehicle, [tint_service], next_week).json()
    urgent = book(client, customer_headers, vehicle, [ppf_service], next_week).json()

    response = client.patch(
        f"/bookings/{urgent['id']}", json={"priority": "urgent"}, headers=staff_headers
    )
    assert response.status_code == 200

    queue = client.get("/bookings/work-queue", headers=staff_headers).json()
    assert [item["booking_id"] for item in queue] == [urgent["id"], normal["id"]]
    assert queue[0]["stage"] == "vehicle_checkin"
    assert queue[0]["customer_name"] == "Jane Customer"

    client.patch(
        f"/bookings/{normal['id']}/stages/{normal['stages'][0]['id']}/assign",
        json={"assigned_to": staff_user.id},
        headers=staff_headers,
    )

    mine = client.get("/bookings/work-queue?filter=mine", headers=staff_headers).json()
    assert [item["booking_id"] for item in mine] == [normal["id"]]

    unassigned = client.get("/bookings/work-queue?filter=unassigned", headers=staff_headers).json()
    assert [item["booking_id"] for item in unassigned] == [urgent["id"]]

    assert client.get("/bookings/work-queue?filter=other", headers=staff_headers).status_code == 400


def test_eta_update_notifies_customer(
    client, db, customer, customer_headers, staff_headers, vehicle, ppf_service, next_week
):
    booking = book(client, customer_headers, vehicle, [ppf_service], next_week).json()

    response = client.patch(
        f"/bookings/{booking['id']}",
        json={"estimated_completion": f"{next_week.isoformat()}T16:00:00"},
        headers=staff_headers,
    )

    assert response.status_code == 200
    note = db.query(Notification).filter(Notification.recipient_uid == customer.id).one()
    assert note.type == "eta_updated"
    assert db.query(Booking).count() == 1
