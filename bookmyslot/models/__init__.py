from bookmyslot.models.user import User, UserCreate
from bookmyslot.models.clinic import Clinic, ClinicCreate, ClinicUpdate, DoctorEntry
from bookmyslot.models.slot import Slot, SlotCreate
from bookmyslot.models.booking import Booking, PublicBookingCreate
from bookmyslot.models.notification import Notification

__all__ = [
    "User",
    "UserCreate",
    "Clinic",
    "ClinicCreate",
    "ClinicUpdate",
    "DoctorEntry",
    "Slot",
    "SlotCreate",
    "Booking",
    "PublicBookingCreate",
    "Notification",
]
