# scheduling/state_machine.py
"""
Status transitions of a single appointment slot.

Every transition is one conditional ``UPDATE ... WHERE status IN (...)`` whose
affected-row count decides success. Two concurrent bookings of the same slot
therefore race safely: exactly one update matches, the other sees zero rows
and gets SlotNotAvailableError. No row locks or read-then-write.
"""
import logging

from django.db import DatabaseError
from django.utils import timezone

from .exceptions import InvalidTransitionError, ScheduleValidationError, SlotNotAvailableError, StorageError
from .models import AppointmentSlot
from .store import SlotStore

logger = logging.getLogger(__name__)

AVAILABLE = AppointmentSlot.AVAILABLE
BOOKED = AppointmentSlot.BOOKED
COMPLETED = AppointmentSlot.COMPLETED
CANCELLED = AppointmentSlot.CANCELLED
NO_SHOW = AppointmentSlot.NO_SHOW

# Cancelling an available slot is an administrative block. Cancelled slots are
# never reopened; a fresh slot has to be regenerated for that time.
STATUS_TRANSITIONS = {
    AVAILABLE: [BOOKED, CANCELLED],
    BOOKED: [COMPLETED, CANCELLED, NO_SHOW],
    COMPLETED: [],
    CANCELLED: [],
    NO_SHOW: [],
}


def can_transition(current_status, target_status):
    return target_status in STATUS_TRANSITIONS.get(current_status, [])


def source_statuses(target_status):
    """Statuses a slot may be in to move to ``target_status``"""
    return [status for status, targets in STATUS_TRANSITIONS.items() if target_status in targets]


class BookingStateMachine:
    """Applies legal status transitions to AppointmentSlot rows"""

    def __init__(self, store=None):
        self.store = store or SlotStore()

    def book(self, slot_id, appointment_id):
        """Available -> Booked, linking the appointment"""
        if appointment_id is None:
            raise ScheduleValidationError('An appointment reference is required to book a slot.')
        return self._transition(slot_id, BOOKED, appointment_id=appointment_id)

    def cancel(self, slot_id):
        """Booked (or Available, as an administrative block) -> Cancelled"""
        return self._transition(slot_id, CANCELLED, appointment_id=None)

    def complete(self, slot_id):
        """Booked -> Completed; the appointment stays linked"""
        return self._transition(slot_id, COMPLETED)

    def mark_no_show(self, slot_id):
        return self._transition(slot_id, NO_SHOW, appointment_id=None)

    def _transition(self, slot_id, target_status, **changes):
        try:
            updated = self.store.live_slots().filter(
                pk=slot_id,
                status__in=source_statuses(target_status)
            ).update(status=target_status, updated_at=timezone.now(), **changes)
        except DatabaseError as exc:
            logger.error('Status update to %s failed for slot %s: %s', target_status, slot_id, exc)
            raise StorageError(f'Could not update slot {slot_id}.') from exc

        if not updated:
            slot = self.store.get(slot_id)
            logger.warning(
                'Rejected transition of slot %s from %s to %s', slot_id, slot.status, target_status
            )
            if target_status == BOOKED and not slot.is_terminal:
                raise SlotNotAvailableError(slot_id, slot.status)
            raise InvalidTransitionError(slot_id, slot.status, target_status)

        logger.info('Slot %s moved to %s', slot_id, target_status)
        return self.store.get(slot_id)
