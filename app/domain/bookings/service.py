"""Booking service - Business logic for bookings and job-stage tracking"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import config
from ...auth import is_staff
from ...models import Booking, BookingService, BookingStage, Profile, Vehicle
from ...services.notification_service import notify_staff, notify_user
from ..catalog.availability import TIME_SLOTS
from ..catalog.service import CatalogService
from .repository import BookingRepository
from .schemas import (
    BookingCreate,
    BookingResponse,
    BookingServiceLine,
    BookingStatusUpdate,
    BookingUpdate,
    JobTrackingResponse,
    StageResponse,
    WorkQueueItem,
)
from .stages import DEFAULT_STAGES, PRIORITY_ORDER, stage_key, validate_status_transition

logger = logging.getLogger(__name__)

WORK_QUEUE_FILTERS = ("all", "unassigned", "mine")


def describe_vehicle(vehicle: Optional[Vehicle]) -> Optional[str]:
    if not vehicle:
        return None
    year = f"{vehicle.year} " if vehicle.year else ""
    return f"{year}{vehicle.make} {vehicle.model}"


def to_booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        user_id=booking.user_id,
        service_id=booking.service_id,
        vehicle_id=booking.vehicle_id,
        booking_date=booking.booking_date,
        booking_time=booking.booking_time,
        status=booking.status,
        current_stage=booking.current_stage,
        estimated_completion=booking.estimated_completion,
        priority=booking.priority,
        payment_amount=float(booking.payment_amount or 0),
        payment_status=booking.payment_status,
        payment_date=booking.payment_date,
        yoco_checkout_id=booking.yoco_checkout_id,
        notes=booking.notes,
        created_at=booking.created_at,
        services=[
            BookingServiceLine(
                service_id=bs.service_id,
                title=bs.service.title if bs.service else None,
                price=float(bs.price or 0),
            )
            for bs in booking.booking_services
        ],
        stages=[StageResponse.model_validate(s) for s in booking.stages],
    )


def calculate_progress(stages: list[BookingStage]) -> int:
    if not stages:
        return 0
    done = sum(1 for s in stages if s.completed)
    return round(done / len(stages) * 100)


class BookingsService:
    """Service layer for bookings and job stages"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    # ------------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------------

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def get_booking_for_user(self, booking_id: str, user: Profile) -> Booking:
        """Owner or staff may view a booking"""
        booking = self.get_booking(booking_id)
        if booking.user_id != user.id and not is_staff(self.db, user):
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def list_my_bookings(self, user: Profile) -> list[Booking]:
        return self.repo.list_for_user(self.db, user.id)

    def list_all_bookings(
        self,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Booking]:
        return self.repo.list_all(self.db, status, date_from, date_to)

    def get_audit_log(self, booking_id: str):
        self.get_booking(booking_id)
        return self.repo.list_audit(self.db, booking_id)

    # ------------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------------

    def create_stages(self, booking: Booking) -> list[BookingStage]:
        """Seed job stages from the service's process template, else the standard flow"""
        template = self.repo.find_template(self.db, booking.service_id)

        if template:
            booking.template_id = template.id
            definitions = [(stage_key(s.stage_name), s.stage_name) for s in template.stages]
        else:
            definitions = DEFAULT_STAGES

        stages = [
            BookingStage(
                booking_id=booking.id,
                stage=key,
                stage_name=name,
                stage_order=order,
                completed=False,
            )
            for order, (key, name) in enumerate(definitions, start=1)
        ]
        self.db.add_all(stages)
        return stages

    async def create_booking(self, data: BookingCreate, user: Profile) -> Booking:
        logger.info(f"📥 Creating booking for user {user.id}: services={data.service_ids}")

        vehicle = (
            self.db.query(Vehicle)
            .filter(Vehicle.id == data.vehicle_id, Vehicle.user_id == user.id)
            .first()
        )
        if not vehicle:
            raise HTTPException(status_code=404, detail="Vehicle not found")

        if data.booking_date < date.today():
            raise HTTPException(status_code=400, detail="Booking date cannot be in the past")

        if data.booking_time not in TIME_SLOTS:
            raise HTTPException(status_code=400, detail="Invalid booking time")

        catalog = CatalogService(self.db)
        services = catalog.repo.get_services(self.db, data.service_ids)
        found = {s.id: s for s in services}
        missing = [sid for sid in data.service_ids if sid not in found]
        if missing:
            raise HTTPException(status_code=404, detail="Service not found")
        ordered = [found[sid] for sid in data.service_ids]
        if any(not s.is_active for s in ordered):
            raise HTTPException(status_code=400, detail="Service is no longer available")

        day = catalog.check_capacity(ordered, data.booking_date)
        if day["status"] == "full":
            logger.warning(f"⚠️ Booking rejected, {data.booking_date} is fully booked")
            raise HTTPException(status_code=409, detail="Selected date is fully booked")

        total_amount = sum(float(s.price_from or 0) for s in ordered)
        test_mode = config.YOCO_TEST_MODE

        booking = Booking(
            user_id=user.id,
            service_id=ordered[0].id,
            vehicle_id=vehicle.id,
            booking_date=data.booking_date,
            booking_time=data.booking_time,
            status="confirmed" if test_mode else "pending",
            payment_status="paid" if test_mode else "pending",
            payment_date=datetime.utcnow() if test_mode else None,
            payment_amount=total_amount,
            notes=data.notes,
        )
        self.db.add(booking)
        self.db.flush()

        for service in ordered:
            self.db.add(
                BookingService(
                    booking_id=booking.id,
                    service_id=service.id,
                    price=float(service.price_from or 0),
                )
            )

        self.create_stages(booking)
        self.repo.log_audit(
            self.db,
            booking.id,
            "created",
            user.id,
            new_values={"status": booking.status, "payment_amount": total_amount},
        )
        self.db.commit()

        logger.info(f"✅ Booking {booking.id} created (R{total_amount:.2f}, status={booking.status})")

        service_names = ", ".join(s.title for s in ordered)
        await notify_staff(
            self.db,
            "new_booking",
            "New booking",
            f"{user.full_name or 'A customer'} booked {service_names} for "
            f"{data.booking_date.isoformat()} at {data.booking_time}",
            booking_id=booking.id,
            exclude_user_id=user.id,
        )

        return self.get_booking(booking.id)

    # ------------------------------------------------------------------------
    # Status & details
    # ------------------------------------------------------------------------

    def cancel_booking(self, booking_id: str, user: Profile) -> Booking:
        booking = self.get_booking(booking_id)
        if booking.user_id != user.id:
            raise HTTPException(status_code=404, detail="Booking not found")

        if booking.status not in ("pending", "confirmed"):
            raise HTTPException(
                status_code=400, detail=f"Cannot cancel a booking that is {booking.status}"
            )

        old_status = booking.status
        booking.status = "cancelled"
        self.repo.log_audit(
            self.db,
            booking.id,
            "status_change",
            user.id,
            {"status": old_status},
            {"status": "cancelled"},
            notes="Cancelled by customer",
        )
        self.db.commit()
        logger.info(f"🚫 Booking {booking.id} cancelled by customer")
        return self.get_booking(booking.id)

    async def update_status(
        self, booking_id: str, data: BookingStatusUpdate, staff: Profile
    ) -> Booking:
        booking = self.get_booking(booking_id)
        old_status = booking.status

        if old_status == data.status:
            return booking

        if not validate_status_transition(old_status, data.status):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status transition from {old_status} to {data.status}",
            )

        booking.status = data.status
        self.repo.log_audit(
            self.db,
            booking.id,
            "status_change",
            staff.id,
            {"status": old_status},
            {"status": data.status},
            notes=data.notes,
        )
        self.db.commit()
        logger.info(f"✅ Booking {booking.id} status: {old_status} → {data.status}")

        if data.status == "confirmed":
            await notify_user(
                self.db,
                booking.user_id,
                "booking_confirmed",
                "Booking confirmed",
                f"Your booking on {booking.booking_date.isoformat()} at {booking.booking_time} is confirmed.",
                booking_id=booking.id,
                vehicle_id=booking.vehicle_id,
                sender_uid=staff.id,
            )
        elif data.status == "completed":
            await notify_user(
                self.db,
                booking.user_id,
                "booking_completed",
                "Job completed",
                "Work on your vehicle is complete.",
                booking_id=booking.id,
                vehicle_id=booking.vehicle_id,
                sender_uid=staff.id,
            )

        return self.get_booking(booking.id)

    async def update_details(self, booking_id: str, data: BookingUpdate, staff: Profile) -> Booking:
        booking = self.get_booking(booking_id)
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            return booking

        old_values = {}
        new_values = {}
        for key, value in updates.items():
            current = getattr(booking, key)
            if current != value:
                old_values[key] = current.isoformat() if isinstance(current, datetime) else current
                new_values[key] = value.isoformat() if isinstance(value, datetime) else value
                setattr(booking, key, value)

        if not new_values:
            return booking

        self.repo.log_audit(self.db, booking.id, "details_updated", staff.id, old_values, new_values)
        self.db.commit()

        if "estimated_completion" in new_values and booking.estimated_completion:
            eta = booking.estimated_completion.strftime("%d %b %Y %H:%M")
            await notify_user(
                self.db,
                booking.user_id,
                "eta_updated",
                "Estimated completion updated",
                f"Your vehicle is now expected to be ready by {eta}.",
                booking_id=booking.id,
                vehicle_id=booking.vehicle_id,
                sender_uid=staff.id,
            )

        return self.get_booking(booking.id)

    # ------------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------------

    def _get_stage(self, booking: Booking, stage_id: str) -> BookingStage:
        stage = self.repo.get_stage(self.db, booking.id, stage_id)
        if not stage:
            raise HTTPException(status_code=404, detail="Stage not found")
        return stage

    def _ensure_workable(self, booking: Booking):
        if booking.status in ("completed", "cancelled"):
            raise HTTPException(
                status_code=400, detail=f"Booking is {booking.status}; stages cannot change"
            )

    async def start_stage(self, booking_id: str, stage_id: str, staff: Profile) -> Booking:
        booking = self.get_booking(booking_id)
        self._ensure_workable(booking)
        stage = self._get_stage(booking, stage_id)

        if stage.completed:
            raise HTTPException(status_code=400, detail="Stage already completed")
        if stage.started_at:
            return booking

        stage.started_at = datetime.utcnow()
        if not stage.assigned_to:
            stage.assigned_to = staff.id

        if booking.status in ("pending", "confirmed"):
            self.repo.log_audit(
                self.db,
                booking.id,
                "status_change",
                staff.id,
                {"status": booking.status},
                {"status": "in_progress"},
                stage_id=stage.id,
            )
            booking.status = "in_progress"

        booking.current_stage = stage.stage
        self.repo.log_audit(
            self.db,
            booking.id,
            "stage_started",
            staff.id,
            new_values={"stage": stage.stage},
            stage_id=stage.id,
        )
        self.db.commit()
        logger.info(f"🔧 Stage {stage.stage} started on booking {booking.id}")

        await notify_user(
            self.db,
            booking.user_id,
            "stage_started",
            "Work update",
            f"{stage.stage_name or stage.stage} has started on your vehicle.",
            booking_id=booking.id,
            vehicle_id=booking.vehicle_id,
            sender_uid=staff.id,
        )
        return self.get_booking(booking.id)

    async def complete_stage(
        self, booking_id: str, stage_id: str, notes: Optional[str], staff: Profile
    ) -> Booking:
        booking = self.get_booking(booking_id)
        self._ensure_workable(booking)
        stage = self._get_stage(booking, stage_id)

        if stage.completed:
            raise HTTPException(status_code=400, detail="Stage already completed")

        now = datetime.utcnow()
        stage.completed = True
        stage.completed_at = now
        if not stage.started_at:
            stage.started_at = now
        if notes is not None:
            stage.notes = notes

        booking.current_stage = stage.stage
        if booking.status in ("pending", "confirmed"):
            self.repo.log_audit(
                self.db,
                booking.id,
                "status_change",
                staff.id,
                {"status": booking.status},
                {"status": "in_progress"},
                stage_id=stage.id,
            )
            booking.status = "in_progress"

        self.repo.log_audit(
            self.db,
            booking.id,
            "stage_completed",
            staff.id,
            new_values={"stage": stage.stage},
            notes=notes,
            stage_id=stage.id,
        )

        self.db.flush()
        all_done = all(s.completed for s in booking.stages)
        if all_done:
            self.repo.log_audit(
                self.db,
                booking.id,
                "status_change",
                staff.id,
                {"status": booking.status},
                {"status": "completed"},
                notes="All stages completed",
            )
            booking.status = "completed"

        self.db.commit()
        logger.info(f"✅ Stage {stage.stage} completed on booking {booking.id}")

        await notify_user(
            self.db,
            booking.user_id,
            "stage_completed",
            "Stage completed",
            f"{stage.stage_name or stage.stage} is complete.",
            booking_id=booking.id,
            vehicle_id=booking.vehicle_id,
            sender_uid=staff.id,
        )

        if all_done:
            await notify_user(
                self.db,
                booking.user_id,
                "ready_for_pickup",
                "Ready for pickup",
                "Your vehicle is ready for pickup!",
                booking_id=booking.id,
                vehicle_id=booking.vehicle_id,
                sender_uid=staff.id,
                priority="high",
            )

        return self.get_booking(booking.id)

    def assign_stage(
        self, booking_id: str, stage_id: str, assignee_id: Optional[str], staff: Profile
    ) -> Booking:
        booking = self.get_booking(booking_id)
        stage = self._get_stage(booking, stage_id)

        if assignee_id:
            assignee = self.db.query(Profile).filter(Profile.id == assignee_id).first()
            if not assignee or not is_staff(self.db, assignee):
                raise HTTPException(status_code=400, detail="Assignee must be a staff member")

        old = stage.assigned_to
        stage.assigned_to = assignee_id
        self.repo.log_audit(
            self.db,
            booking.id,
            "stage_assigned",
            staff.id,
            {"assigned_to": old},
            {"assigned_to": assignee_id},
            stage_id=stage.id,
        )
        self.db.commit()
        return self.get_booking(booking.id)

    # ------------------------------------------------------------------------
    # Work queue & tracking
    # ------------------------------------------------------------------------

    def get_work_queue(self, queue_filter: str, staff: Profile) -> list[WorkQueueItem]:
        """The next incomplete stage of every active booking, most urgent first"""
        if queue_filter not in WORK_QUEUE_FILTERS:
            raise HTTPException(status_code=400, detail="Filter must be all, unassigned or mine")

        items = []
        for booking in self.repo.list_active_with_stages(self.db):
            next_stage = next((s for s in booking.stages if not s.completed), None)
            if not next_stage:
                continue
            if queue_filter == "unassigned" and next_stage.assigned_to:
                continue
            if queue_filter == "mine" and next_stage.assigned_to != staff.id:
                continue

            items.append(
                WorkQueueItem(
                    booking_id=booking.id,
                    stage_id=next_stage.id,
                    stage=next_stage.stage,
                    stage_name=next_stage.stage_name,
                    stage_order=next_stage.stage_order,
                    priority=booking.priority,
                    booking_status=booking.status,
                    booking_date=booking.booking_date,
                    booking_time=booking.booking_time,
                    assigned_to=next_stage.assigned_to,
                    assignee_name=next_stage.assignee.full_name if next_stage.assignee else None,
                    started_at=next_stage.started_at,
                    customer_name=booking.user.full_name if booking.user else None,
                    vehicle=describe_vehicle(booking.vehicle),
                    service_title=booking.service.title if booking.service else None,
                )
            )

        items.sort(key=lambda i: (PRIORITY_ORDER.get(i.priority, 2), i.stage_order, i.booking_date))
        return items

    def get_job_tracking(self, booking_id: str, user: Profile) -> JobTrackingResponse:
        booking = self.get_booking_for_user(booking_id, user)
        stages = booking.stages
        completed = sum(1 for s in stages if s.completed)
        current = next((s for s in stages if not s.completed), None)

        return JobTrackingResponse(
            booking=to_booking_response(booking),
            vehicle=describe_vehicle(booking.vehicle),
            progress=calculate_progress(stages),
            completed_stages=completed,
            total_stages=len(stages),
            current_stage_name=current.stage_name if current else None,
        )
