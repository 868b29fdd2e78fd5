from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..application.services.slot_service import SlotService
from ..dependencies import get_current_user, get_slot_service
from ..schemas.common.common import MessageResponse
from ..schemas.slots.slot import AddSlotsRequest, TimeSlotResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["Time Slots"])


@router.post("/{doctor_id}/slots", response_model=List[TimeSlotResponse], status_code=201)
def add_time_slots(
    doctor_id: int,
    payload: AddSlotsRequest,
    current_user: str = Depends(get_current_user),
    slot_service: SlotService = Depends(get_slot_service),
):
    try:
        created = slot_service.add_slots(doctor_id, current_user, [s.to_window() for s in payload.slots])
        return [TimeSlotResponse.from_dto(s) for s in created]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error adding time slots: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to add time slots")


@router.delete("/{doctor_id}/slots/{slot_id}", response_model=MessageResponse)
def delete_time_slot(
    doctor_id: int,
    slot_id: int,
    current_user: str = Depends(get_current_user),
    slot_service: SlotService = Depends(get_slot_service),
):
    try:
        slot_service.delete_slot(doctor_id, slot_id, current_user)
        return MessageResponse(message="Time slot deleted")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting time slot {slot_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to delete time slot")


@router.get("/{doctor_id}/availability", response_model=List[TimeSlotResponse])
def get_doctor_availability(
    doctor_id: int,
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None),
    only_free: bool = Query(False),
    slot_service: SlotService = Depends(get_slot_service),
):
    try:
        slots = slot_service.get_availability(doctor_id, start_date, end_date or start_date, only_free=only_free)
        return [TimeSlotResponse.from_dto(s) for s in slots]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving availability for doctor {doctor_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve availability")
