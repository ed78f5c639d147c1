import asyncio
from datetime import date, datetime, timedelta
from types import SimpleNamespace

from app.domain.leads.pipeline import (
    PIPELINE_COLUMNS,
    calculate_metrics,
    conversion_rate,
    is_follow_up_due,
)
from app.domain.leads.service import format_rand, send_follow_up_reminders
from app.models import Booking
from app.models_leads import Lead, LeadActivity
from app.models_notifications import Notification


def lead_stub(status="new", source="website", assigned_to=None, next_follow_up_at=None):
    return SimpleNamespace(
        status=status, source=source, assigned_to=assigned_to, next_follow_up_at=next_follow_up_at
    )


def create_lead(client, headers, **overrides):
    payload = {"name": "Thabo M", "phone": "0831234567", "service_interest": ["PPF"]}
    payload.update(overrides)
    return client.post("/leads", json=payload, headers=headers)


def test_pipeline_excludes_lost_column():
    assert PIPELINE_COLUMNS == ["new", "contacted", "quoted", "follow_up", "deposit_paid", "booked"]


def test_conversion_rate_counts_worked_leads_only():
    assert conversion_rate({"new": 4}, 4) == 0
    assert conversion_rate({"new": 2, "booked": 1, "deposit_paid": 1, "lost": 2}, 6) == 50
    assert conversion_rate({}, 0) == 0


def test_follow_up_due():
    now = datetime(2026, 5, 1, 12, 0)
    due = lead_stub(status="quoted", next_follow_up_at=now - timedelta(hours=1))
    future = lead_stub(status="quoted", next_follow_up_at=now + timedelta(hours=1))
    closed = lead_stub(status="lost", next_follow_up_at=now - timedelta(days=1))

    assert is_follow_up_due(due, now)
    assert not is_follow_up_due(future, now)
    assert not is_follow_up_due(closed, now)
    assert not is_follow_up_due(lead_stub(), now)


def test_calculate_metrics():
    now = datetime(2026, 5, 1, 12, 0)
    leads = [
        lead_stub("new", "website"),
        lead_stub("contacted", "whatsapp", assigned_to="s1"),
        lead_stub("quoted", "whatsapp", assigned_to="s1", next_follow_up_at=now - timedelta(days=1)),
        lead_stub("booked", "walk_in", assigned_to="s2"),
    ]

    metrics = calculate_metrics(leads, now)

    assert metrics["total"] == 4
    assert metrics["new"] == 1
    assert metrics["unassigned"] == 1
    assert metrics["needs_follow_up"] == 1
    assert metrics["conversion_rate"] == 33
    assert metrics["by_source"]["whatsapp"] == 2
    assert metrics["by_source"]["email"] == 0
    assert metrics["by_status"]["booked"] == 1


def test_public_intake_creates_website_lead_and_alerts_staff(client, db, staff_user):
    response = client.post(
        "/leads/intake",
        json={
            "name": "  Lerato  ",
            "email": "Lerato@Example.com",
            "service_interest": ["Ceramic", "Tint"],
            "notes": "Quote for a new Golf R",
        },
    )

    assert response.status_code == 201
    lead = db.query(Lead).filter(Lead.id == response.json()["lead_id"]).one()
    assert lead.name == "Lerato"
    assert lead.email == "lerato@example.com"
    assert lead.source == "website"
    assert lead.status == "new"

    alert = db.query(Notification).filter(Notification.recipient_uid == staff_user.id).one()
    assert alert.type == "client_inquiry"
    assert "Ceramic, Tint" in alert.message


def test_intake_validates_contact_details(client, db):
    assert client.post("/leads/intake", json={"name": "X", "phone": "123"}).status_code == 422
    assert client.post("/leads/intake", json={"name": "X", "email": "nope"}).status_code == 422
    assert client.post("/leads/intake", json={"name": "   "}).status_code == 422


def test_staff_only_pipeline(client, customer_headers):
    assert client.get("/leads", headers=customer_headers).status_code == 403
    assert client.get("/leads/pipeline", headers=customer_headers).status_code == 403


def test_create_lead_logs_creation(client, staff_user, staff_headers):
    response = create_lead(client, staff_headers, source="whatsapp")

    assert response.status_code == 201
    lead = response.json()
    assert lead["phone"] == "+27831234567"
    assert lead["source"] == "whatsapp"
    assert lead["created_by"] == staff_user.id
    assert lead["last_contact_at"] is not None

    detail = client.get(f"/leads/{lead['id']}", headers=staff_headers).json()
    assert [(a["activity_type"], a["description"]) for a in detail["activities"]] == [
        ("note", "Lead created")
    ]


def test_create_lead_rejects_unknown_source_and_non_staff_assignee(client, customer, staff_headers):
    assert create_lead(client, staff_headers, source="fax").status_code == 422
    assert create_lead(client, staff_headers, assigned_to=customer.id).status_code == 400


def test_status_change_records_activity(client, staff_headers):
    lead = create_lead(client, staff_headers).json()

    response = client.patch(f"/leads/{lead['id']}/status", json={"status": "contacted"}, headers=staff_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "contacted"

    # Moves are unrestricted, including backwards
    response = client.patch(f"/leads/{lead['id']}/status", json={"status": "new"}, headers=staff_headers)
    assert response.json()["status"] == "new"

    assert client.patch(
        f"/leads/{lead['id']}/status", json={"status": "won"}, headers=staff_headers
    ).status_code == 400

    activities = client.get(f"/leads/{lead['id']}/activities", headers=staff_headers).json()
    changes = [a for a in activities if a["activity_type"] == "status_change"]
    assert {a["description"] for a in changes} == {
        "Status changed from new to contacted",
        "Status changed from contacted to new",
    }
    assert {a["metadata"]["new_status"] for a in changes} == {"contacted", "new"}


def test_same_status_is_a_no_op(client, db, staff_headers):
    lead = create_lead(client, staff_headers).json()

    client.patch(f"/leads/{lead['id']}/status", json={"status": "new"}, headers=staff_headers)

    assert db.query(LeadActivity).filter(LeadActivity.activity_type == "status_change").count() == 0


def test_quote_activity_sets_amount_and_follow_up(client, staff_headers):
    lead = create_lead(client, staff_headers).json()
    follow_up = (datetime.utcnow() + timedelta(days=2)).replace(microsecond=0)

    response = client.post(
        f"/leads/{lead['id']}/activities",
        json={
            "activity_type": "quote_sent",
            "description": "Sent full front PPF quote",
            "amount": 18500,
            "next_follow_up_at": follow_up.isoformat(),
        },
        headers=staff_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["quoted_amount"] == 18500
    assert data["next_follow_up_at"].startswith(follow_up.isoformat())

    assert client.post(
        f"/leads/{lead['id']}/activities", json={"activity_type": "fax"}, headers=staff_headers
    ).status_code == 422


def test_deposit_moves_lead_to_deposit_paid(client, staff_headers):
    lead = create_lead(client, staff_headers).json()

    assert client.post(
        f"/leads/{lead['id']}/deposit", json={"amount": 0}, headers=staff_headers
    ).status_code == 422

    response = client.post(f"/leads/{lead['id']}/deposit", json={"amount": 2500}, headers=staff_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "deposit_paid"
    assert data["deposit_amount"] == 2500
    assert data["deposit_paid_at"] is not None

    activities = client.get(f"/leads/{lead['id']}/activities", headers=staff_headers).json()
    descriptions = {a["description"] for a in activities}
    assert "Deposit of R2,500 received" in descriptions
    assert "Status changed from new to deposit_paid" in descriptions


def test_convert_to_booking(client, db, customer, staff_headers, vehicle, ppf_service):
    lead = create_lead(client, staff_headers).json()

    assert client.post(
        f"/leads/{lead['id']}/convert", json={"booking_id": "missing"}, headers=staff_headers
    ).status_code == 404

    booking = Booking(
        user_id=customer.id,
        service_id=ppf_service.id,
        vehicle_id=vehicle.id,
        booking_date=date.today() + timedelta(days=5),
        booking_time="09:00 AM",
    )
    db.add(booking)
    db.commit()

    response = client.post(
        f"/leads/{lead['id']}/convert", json={"booking_id": booking.id}, headers=staff_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "booked"
    assert response.json()["converted_to_booking_id"] == booking.id


def test_pipeline_and_metrics_endpoints(client, staff_headers):
    first = create_lead(client, staff_headers, name="Lead One").json()
    second = create_lead(client, staff_headers, name="Lead Two").json()
    client.patch(f"/leads/{first['id']}/status", json={"status": "quoted"}, headers=staff_headers)
    client.patch(f"/leads/{second['id']}/status", json={"status": "lost"}, headers=staff_headers)

    columns = client.get("/leads/pipeline", headers=staff_headers).json()
    assert [c["status"] for c in columns] == PIPELINE_COLUMNS
    quoted = next(c for c in columns if c["status"] == "quoted")
    assert quoted["label"] == "Quoted"
    assert [lead["name"] for lead in quoted["leads"]] == ["Lead One"]
    assert all(lead["status"] != "lost" for c in columns for lead in c["leads"])

    metrics = client.get("/leads/metrics", headers=staff_headers).json()
    assert metrics["total"] == 2
    assert metrics["by_status"]["lost"] == 1
    assert metrics["conversion_rate"] == 0


def test_list_filters_and_search(client, staff_headers):
    create_lead(client, staff_headers, name="Pieter Botha", source="phone")
    create_lead(client, staff_headers, name="Naledi K", source="referral", phone="0729998888")

    names = [lead["name"] for lead in client.get("/leads?source=phone", headers=staff_headers).json()]
    assert names == ["Pieter Botha"]

    found = client.get("/leads?search=botha", headers=staff_headers).json()
    assert [lead["name"] for lead in found] == ["Pieter Botha"]

    found = client.get("/leads?search=9998888", headers=staff_headers).json()
    assert [lead["name"] for lead in found] == ["Naledi K"]


def test_delete_requires_admin(client, staff_headers, admin_headers):
    lead = create_lead(client, staff_headers).json()

    assert client.delete(f"/leads/{lead['id']}", headers=staff_headers).status_code == 403
    assert client.delete(f"/leads/{lead['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/leads/{lead['id']}", headers=admin_headers).status_code == 404


def test_follow_up_reminders_go_to_assignees(db, staff_user):
    now = datetime(2026, 5, 1, 9, 0)
    db.add_all(
        [
            Lead(name="Due", status="quoted", assigned_to=staff_user.id, next_follow_up_at=now - timedelta(hours=2)),
            Lead(name="Later", status="quoted", assigned_to=staff_user.id, next_follow_up_at=now + timedelta(days=1)),
            Lead(name="Closed", status="booked", assigned_to=staff_user.id, next_follow_up_at=now - timedelta(days=3)),
            Lead(name="Nobody", status="contacted", next_follow_up_at=now - timedelta(days=1)),
        ]
    )
    db.commit()

    sent = asyncio.run(send_follow_up_reminders(db, now))

    assert sent == 1
    reminder = db.query(Notification).filter(Notification.recipient_uid == staff_user.id).one()
    assert reminder.type == "system_alert"
    assert reminder.action_required is True
    assert "Due" in reminder.message


def test_format_rand_drops_trailing_zero_cents():
    assert format_rand(500) == "R500"
    assert format_rand(2500) == "R2,500"
    assert format_rand(1250.5) == "R1,250.5"
    assert format_rand(99.99) == "R99.99"


def test_activity_updates_last_contact(client, db, staff_headers):
    lead = create_lead(client, staff_headers).json()
    long_ago = datetime(2020, 1, 1)

    for action in (
        lambda: client.patch(f"/leads/{lead['id']}/status", json={"status": "contacted"}, headers=staff_headers),
        lambda: client.post(f"/leads/{lead['id']}/deposit", json={"amount": 500}, headers=staff_headers),
    ):
        db.query(Lead).filter(Lead.id == lead["id"]).update({"last_contact_at": long_ago})
        db.commit()

        assert action().status_code == 200
        db.expire_all()
        assert db.get(Lead, lead["id"]).last_contact_at > long_ago


def test_follow_up_reminder_is_sent_once_per_due_date(db, staff_user):
    now = datetime(2026, 5, 1, 9, 0)
    lead = Lead(name="Due", status="quoted", assigned_to=staff_user.id, next_follow_up_at=now - timedelta(hours=2))
    db.add(lead)
    db.commit()

    assert asyncio.run(send_follow_up_reminders(db, now)) == 1
    assert asyncio.run(send_follow_up_reminders(db, now + timedelta(hours=1))) == 0
    assert db.query(Notification).count() == 1

    reminder = db.query(LeadActivity).filter(LeadActivity.activity_type == "follow_up").one()
    assert reminder.created_by is None
    assert reminder.activity_metadata == {"reminder_for": lead.next_follow_up_at.isoformat()}
    assert db.get(Lead, lead.id).last_contact_at is None

    # a new follow-up date gets its own reminder
    lead.next_follow_up_at = now + timedelta(days=1)
    db.commit()
    assert asyncio.run(send_follow_up_reminders(db, now + timedelta(days=2))) == 1
