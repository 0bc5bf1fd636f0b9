"""Initial-status rules for newly admitted bookings."""

from typing import Protocol

from backend.scheduling.types import BookingStatus, DoctorProfile


class ConfirmationPolicy(Protocol):
    name: str

    def decide(self, doctor: DoctorProfile) -> BookingStatus: ...


class AutoConfirmationPolicy:
    """Every booking for an eligible doctor is confirmed on admission."""

    name = 'auto'

    def decide(self, doctor: DoctorProfile) -> BookingStatus:
        return BookingStatus.CONFIRMED


class ManualConfirmationPolicy:
    """Bookings wait in ``pending`` until the doctor confirms them."""

    name = 'manual'

    def decide(self, doctor: DoctorProfile) -> BookingStatus:
        return BookingStatus.PENDING


POLICIES: dict[str, type] = {
    AutoConfirmationPolicy.name: AutoConfirmationPolicy,
    ManualConfirmationPolicy.name: ManualConfirmationPolicy,
}


def get_policy(name: str) -> ConfirmationPolicy:
    try:
        return POLICIES[name.strip().lower()]()
    except KeyError as exc:
        raise ValueError(f'Unknown confirmation policy: {name}') from exc
