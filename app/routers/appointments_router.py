from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..application.services.booking_service import BookingService
from ..application.services.lifecycle_service import LifecycleService
from ..dependencies import get_booking_service, get_current_user, get_lifecycle_service
from ..exceptions import ValidationFailedError
from ..schemas.appointments.appointment import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusUpdate,
    parse_status,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.post("/", response_model=AppointmentResponse, status_code=201)
def book_appointment(
    appointment_data: AppointmentCreate,
    current_user: str = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
):
    try:
        appt = booking_service.book(
            current_user,
            appointment_data.doctor_id,
            appointment_data.time_slot_id,
            reason_for_visit=appointment_data.reason_for_visit,
        )
        return AppointmentResponse.from_dto(appt)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error booking appointment: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to book appointment")


@router.get("/", response_model=List[AppointmentResponse])
def get_my_appointments(
    status: Optional[str] = Query(None),
    current_user: str = Depends(get_current_user),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
):
    try:
        try:
            status_filter = parse_status(status) if status else None
        except ValueError as e:
            raise ValidationFailedError(str(e))
        appts = lifecycle.list_my_appointments(current_user, status=status_filter)
        return [AppointmentResponse.from_dto(a) for a in appts]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving appointments: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve appointments")


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    current_user: str = Depends(get_current_user),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
):
    try:
        return AppointmentResponse.from_dto(lifecycle.get_appointment(appointment_id, current_user))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving appointment {appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve appointment")


@router.put("/{appointment_id}/status", response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    payload: AppointmentStatusUpdate,
    current_user: str = Depends(get_current_user),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
):
    try:
        appt = lifecycle.transition(
            appointment_id,
            current_user,
            payload.status,
            notes=payload.notes,
            cancellation_reason=payload.cancellation_reason,
        )
        return AppointmentResponse.from_dto(appt)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating appointment {appointment_id} status: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update appointment status")


@router.put("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    payload: Optional[AppointmentCancel] = None,
    current_user: str = Depends(get_current_user),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
):
    try:
        reason = payload.cancellation_reason if payload else None
        return AppointmentResponse.from_dto(lifecycle.cancel(appointment_id, current_user, cancellation_reason=reason))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error cancelling appointment {appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to cancel appointment")


@router.put("/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: int,
    payload: AppointmentReschedule,
    current_user: str = Depends(get_current_user),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
):
    try:
        appt = lifecycle.reschedule(appointment_id, current_user, payload.new_time_slot_id, reason=payload.reason)
        return AppointmentResponse.from_dto(appt)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error rescheduling appointment {appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to reschedule appointment")
