# Models package (re-export feature modules for stable imports)
from .users.user import User
from .users.patient import Patient
from .health.doctor import Doctor
from .health.appointment import Appointment
from .scheduling.time_slot import TimeSlot

__all__ = [
    "User",
    "Patient",
    "Doctor",
    "Appointment",
    "TimeSlot",
]
