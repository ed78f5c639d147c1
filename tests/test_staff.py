import uuid
from datetime import date, datetime, time, timedelta

from app.models import Booking, Department, Profile, StaffInvitation, StaffProfile, UserRole
from app.models_inventory import InventoryItem
from app.models_leads import Lead

from conftest import create_profile, make_token


def test_staff_routes_require_staff(client, customer_headers):
    assert client.get("/staff/dashboard", headers=customer_headers).status_code == 403
    assert client.get("/staff/members", headers=customer_headers).status_code == 403


def test_department_lifecycle(client, db, staff_headers, admin_headers, staff_user):
    denied = client.post("/staff/departments", json={"name": "Tint Bay"}, headers=staff_headers)
    assert denied.status_code == 403

    created = client.post(
        "/staff/departments",
        json={"name": " Tint Bay ", "description": "Window film"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    department_id = created.json()["id"]
    assert created.json()["name"] == "Tint Bay"

    duplicate = client.post("/staff/departments", json={"name": "Tint Bay"}, headers=admin_headers)
    assert duplicate.status_code == 400

    renamed = client.patch(
        f"/staff/departments/{department_id}", json={"name": "Tint & Wrap"}, headers=admin_headers
    )
    assert renamed.json()["name"] == "Tint & Wrap"

    client.patch(
        f"/staff/members/{staff_user.id}", json={"department_id": department_id}, headers=admin_headers
    )
    member = client.get(f"/staff/members/{staff_user.id}", headers=staff_headers).json()
    assert member["department_name"] == "Tint & Wrap"

    assert client.delete(f"/staff/departments/{department_id}", headers=admin_headers).json()["success"]
    db.expire_all()
    assert db.query(Department).count() == 0
    assert db.query(StaffProfile).filter(StaffProfile.user_id == staff_user.id).one().department_id is None


def test_add_existing_user_to_staff(client, db, admin_headers, customer):
    response = client.post(
        "/staff/members",
        json={"email": "Jane@Example.com", "staff_role": "reception", "job_title": "Front desk"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["user_id"] == customer.id
    assert body["staff_role"] == "reception"
    assert body["job_title"] == "Front desk"
    assert db.query(UserRole).filter(UserRole.user_id == customer.id, UserRole.role == "staff").count() == 1

    again = client.post("/staff/members", json={"email": "jane@example.com"}, headers=admin_headers)
    assert again.status_code == 400


def test_add_staff_validation(client, admin_headers):
    unknown = client.post("/staff/members", json={"email": "ghost@example.com"}, headers=admin_headers)
    assert unknown.status_code == 404

    bad_role = client.post(
        "/staff/members", json={"email": "jane@example.com", "staff_role": "janitor"}, headers=admin_headers
    )
    assert bad_role.status_code == 422


def test_update_member_normalizes_phone(client, admin_headers, staff_user):
    response = client.patch(
        f"/staff/members/{staff_user.id}",
        json={"phone_number": "082 555 0101", "skills": ["ppf", "ceramic"], "can_collect_deposits": True},
        headers=admin_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["phone_number"] == "+27825550101"
    assert body["skills"] == ["ppf", "ceramic"]
    assert body["can_collect_deposits"] is True


def test_remove_staff(client, db, admin_headers, staff_user, admin_user):
    staff_id = staff_user.id
    response = client.delete(f"/staff/members/{staff_id}", headers=admin_headers)
    assert response.json()["success"] is True

    db.expire_all()
    assert db.query(StaffProfile).filter(StaffProfile.user_id == staff_id).count() == 0
    assert db.query(UserRole).filter(UserRole.user_id == staff_id).count() == 0

    admin_removal = client.delete(f"/staff/members/{admin_user.id}", headers=admin_headers)
    assert admin_removal.status_code == 400


def test_invite_and_accept(client, db, admin_headers, admin_user):
    response = client.post(
        "/staff/invitations",
        json={"email": "newtech@racetechnik.co.za", "staff_role": "senior_technician"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["invite_url"].startswith("http://localhost:5173/auth/staff-signup?token=")
    token = body["invite_url"].split("token=")[1]

    pending = client.get("/staff/invitations", headers=admin_headers).json()
    assert [i["email"] for i in pending] == ["newtech@racetechnik.co.za"]

    duplicate = client.post(
        "/staff/invitations", json={"email": "newtech@racetechnik.co.za"}, headers=admin_headers
    )
    assert duplicate.status_code == 400

    new_user_id = str(uuid.uuid4())
    headers = {"Authorization": f"Bearer {make_token(new_user_id, 'newtech@racetechnik.co.za')}"}
    accepted = client.post("/staff/invitations/accept", json={"token": token}, headers=headers)
    assert accepted.status_code == 200
    assert accepted.json()["user_id"] == new_user_id
    assert accepted.json()["staff_role"] == "senior_technician"

    reused = client.post("/staff/invitations/accept", json={"token": token}, headers=headers)
    assert reused.status_code == 400

    assert client.get("/staff/invitations", headers=admin_headers).json() == []
    assert client.get("/staff/dashboard", headers=headers).status_code == 200


def test_invite_rejects_existing_account(client, admin_headers, customer):
    response = client.post("/staff/invitations", json={"email": "jane@example.com"}, headers=admin_headers)
    assert response.status_code == 400


def test_expired_invitation(client, db, admin_user, customer, customer_headers):
    db.add(
        StaffInvitation(
            email="late@racetechnik.co.za",
            token="expired-token",
            invited_by=admin_user.id,
            expires_at=datetime.utcnow() - timedelta(hours=1),
        )
    )
    db.commit()

    response = client.post("/staff/invitations/accept", json={"token": "expired-token"}, headers=customer_headers)
    assert response.status_code == 400


def test_walk_in_customer(client, db, staff_headers, customer):
    created = client.post(
        "/staff/walk-in",
        json={"full_name": "Walk In", "phone": "083 111 2222"},
        headers=staff_headers,
    )
    assert created.status_code == 201
    body = created.json()
    assert body["existing"] is False
    profile = db.query(Profile).filter(Profile.id == body["user_id"]).one()
    assert profile.email.startswith("walkin.")
    assert profile.email.endswith("@racetechnik.local")
    assert profile.phone == "+27831112222"

    existing = client.post(
        "/staff/walk-in",
        json={"full_name": "Jane Q Customer", "email": "jane@example.com"},
        headers=staff_headers,
    )
    assert existing.json()["existing"] is True
    assert existing.json()["user_id"] == customer.id

    blank = client.post("/staff/walk-in", json={"full_name": "   "}, headers=staff_headers)
    assert blank.status_code == 422


def test_customer_list_excludes_staff_and_counts_bookings(client, db, staff_headers, customer, staff_user, admin_user):
    create_profile(db, "owner@racetechnik.co.za", "Owner")
    other = create_profile(db, "mike@example.com", "Mike Driver", "+27829998888")
    db.add_all(
        [
            Booking(user_id=customer.id, booking_date=date(2026, 3, 1), booking_time="08:00"),
            Booking(user_id=customer.id, booking_date=date(2026, 4, 2), booking_time="10:00"),
        ]
    )
    db.commit()

    customers = client.get("/staff/customers", headers=staff_headers).json()
    by_id = {c["id"]: c for c in customers}
    assert set(by_id) == {customer.id, other.id}
    assert by_id[customer.id]["booking_count"] == 2
    assert by_id[customer.id]["last_booking_date"] == "2026-04-02"
    assert by_id[other.id]["booking_count"] == 0

    searched = client.get("/staff/customers", params={"search": "mike"}, headers=staff_headers).json()
    assert [c["id"] for c in searched] == [other.id]


def test_dashboard_counts(client, db, staff_headers, customer):
    today = date.today()
    db.add_all(
        [
            Booking(user_id=customer.id, booking_date=today, booking_time="08:00", status="pending"),
            Booking(user_id=customer.id, booking_date=today, booking_time="09:00", status="cancelled"),
            Booking(
                user_id=customer.id,
                booking_date=today - timedelta(days=1),
                booking_time="08:00",
                status="in_progress",
                payment_status="paid",
                payment_amount=18500.0,
                payment_date=datetime.combine(today, time(12, 0)),
            ),
            InventoryItem(name="Tint Film", quantity=1, min_stock_level=3),
            Lead(name="Prospect", status="new"),
            Lead(name="Warm", status="contacted"),
        ]
    )
    db.commit()

    stats = client.get("/staff/dashboard", headers=staff_headers).json()
    assert stats == {
        "todays_bookings": 1,
        "active_jobs": 1,
        "pending_bookings": 1,
        "monthly_revenue": 18500.0,
        "low_stock_items": 1,
        "new_leads": 1,
    }
