# scheduling/store.py
"""
Persistence of materialized slots.

``materialize`` only ever inserts; it never touches a slot that already exists,
so it can run concurrently with live booking traffic.
"""
import logging
from collections import defaultdict

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from . import intervals
from .exceptions import SlotNotFoundError, StorageError
from .models import AppointmentSlot, WorkPattern

logger = logging.getLogger(__name__)


def _span(start_time, end_time):
    return intervals.to_minutes(start_time), intervals.to_minutes(end_time)


class SlotStore:
    """Reads and writes AppointmentSlot rows for the scheduling engine"""

    def live_slots(self):
        return AppointmentSlot.objects.filter(is_deleted=False)

    def materialize(self, doctor_id, candidates):
        """
        Insert candidate slots for a doctor, skipping the ones already present.

        A candidate is skipped when a live slot with the same date and times
        exists, when it overlaps a live slot on the same date, or when a
        concurrent insert wins the unique constraint first.

        Runs for the same doctor are serialized on the doctor's active
        WorkPattern row (SELECT ... FOR UPDATE), so the overlap check and the
        inserts see a stable set of slots. SQLite ignores FOR UPDATE and relies
        on its single-writer lock instead.

        Returns:
            tuple: (created, skipped)

        Raises:
            StorageError: the database failed; the whole batch is rolled back
        """
        candidates = sorted(candidates)
        if not candidates:
            return 0, 0

        created = 0
        skipped = 0
        try:
            with transaction.atomic():
                list(WorkPattern.objects.select_for_update().filter(doctor_id=doctor_id, is_active=True))
                taken = defaultdict(list)
                existing = self.live_slots().filter(
                    doctor_id=doctor_id,
                    date__in={c.date for c in candidates}
                ).values_list('date', 'start_time', 'end_time')
                for day, start_time, end_time in existing:
                    taken[day].append(_span(start_time, end_time))

                for candidate in candidates:
                    span = _span(candidate.start_time, candidate.end_time)
                    if any(intervals.overlaps(span, other) for other in taken[candidate.date]):
                        skipped += 1
                        continue
                    try:
                        with transaction.atomic():
                            AppointmentSlot.objects.create(
                                doctor_id=doctor_id,
                                date=candidate.date,
                                start_time=candidate.start_time,
                                end_time=candidate.end_time,
                                duration_minutes=candidate.duration_minutes,
                            )
                    except IntegrityError:
                        # Lost an insert race against another regeneration run
                        skipped += 1
                        continue
                    taken[candidate.date].append(span)
                    created += 1
        except DatabaseError as exc:
            logger.error('Slot materialization failed for doctor %s: %s', doctor_id, exc)
            raise StorageError(f'Could not store slots for doctor {doctor_id}.') from exc

        logger.info('Materialized slots for doctor %s: %d created, %d skipped', doctor_id, created, skipped)
        return created, skipped

    def get(self, slot_id):
        try:
            return self.live_slots().get(pk=slot_id)
        except AppointmentSlot.DoesNotExist:
            raise SlotNotFoundError(slot_id) from None
        except DatabaseError as exc:
            raise StorageError(f'Could not load slot {slot_id}.') from exc

    def find_available(self, doctor_id, date):
        """Open slots of a doctor on one date, earliest first"""
        return self.find_by_range(doctor_id, date, date, statuses=[AppointmentSlot.AVAILABLE])

    def find_by_range(self, doctor_id, from_date, to_date, statuses=None):
        """
        Live slots of a doctor between two dates (inclusive).

        Args:
            statuses: optional iterable of status values to keep

        Returns:
            list of AppointmentSlot ordered by date and start time
        """
        queryset = self.live_slots().filter(
            doctor_id=doctor_id,
            date__gte=from_date,
            date__lte=to_date
        )
        if statuses:
            queryset = queryset.filter(status__in=list(statuses))
        try:
            return list(queryset.order_by('date', 'start_time'))
        except DatabaseError as exc:
            raise StorageError(f'Could not list slots for doctor {doctor_id}.') from exc

    def withdraw_available(self, doctor_id, from_date, to_date, include_cancelled=False):
        """
        Soft-delete slots still open for booking in a date window.

        Used before re-tiling a reconfigured schedule. With ``include_cancelled``
        cancelled slots are withdrawn too, so their times can be generated
        again. Booked and finished slots are left untouched.

        Returns:
            int: number of slots withdrawn
        """
        statuses = [AppointmentSlot.AVAILABLE]
        if include_cancelled:
            statuses.append(AppointmentSlot.CANCELLED)
        try:
            withdrawn = self.live_slots().filter(
                doctor_id=doctor_id,
                date__gte=from_date,
                date__lte=to_date,
                status__in=statuses
            ).update(is_deleted=True, updated_at=timezone.now())
        except DatabaseError as exc:
            raise StorageError(f'Could not withdraw slots for doctor {doctor_id}.') from exc
        logger.info('Withdrew %d open slots for doctor %s (%s to %s)', withdrawn, doctor_id, from_date, to_date)
        return withdrawn
