# scheduling/exceptions.py
"""
Error taxonomy of the scheduling engine.

Validation problems are raised as Django ``ValidationError`` subclasses so the
surrounding forms/admin layer can render them like any other validation error.
Every other failure is a plain ``SchedulingError`` subclass.
"""
from django.core.exceptions import ValidationError


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling engine"""


class ScheduleValidationError(SchedulingError, ValidationError):
    """A work pattern, exception or request is malformed.

    Carries every problem found, not only the first one; ``messages`` lists them.
    """


class InvalidPatternError(ScheduleValidationError):
    """Slot generation was asked to run on an inactive or invalid work pattern"""


class RangeTooFarError(SchedulingError):
    def __init__(self, to_date, last_bookable_date):
        self.to_date = to_date
        self.last_bookable_date = last_bookable_date
        super().__init__(
            f'Cannot generate slots up to {to_date}: the booking window ends on {last_bookable_date}.'
        )


class RangeTooSoonError(SchedulingError):
    def __init__(self, to_date, first_bookable_date):
        self.to_date = to_date
        self.first_bookable_date = first_bookable_date
        super().__init__(
            f'Requested range ends on {to_date}, before the first bookable date {first_bookable_date}.'
        )


class SlotNotAvailableError(SchedulingError):
    """The slot is not open for booking (typically another booking won the race)"""

    def __init__(self, slot_id, current_status):
        self.slot_id = slot_id
        self.current_status = current_status
        super().__init__(f'Slot {slot_id} is not available for booking (status: {current_status}).')


class InvalidTransitionError(SchedulingError):
    def __init__(self, slot_id, current_status, requested_status):
        self.slot_id = slot_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f'Cannot change slot {slot_id} from {current_status} to {requested_status}.'
        )


class NotFoundError(SchedulingError):
    pass


class ScheduleNotFoundError(NotFoundError):
    def __init__(self, doctor_id, pattern_id=None):
        self.doctor_id = doctor_id
        self.pattern_id = pattern_id
        if pattern_id is None:
            message = f'Doctor {doctor_id} has no active work pattern.'
        else:
            message = f'Doctor {doctor_id} has no work pattern {pattern_id}.'
        super().__init__(message)


class TemplateNotFoundError(NotFoundError):
    def __init__(self, template_id):
        self.template_id = template_id
        super().__init__(f'Schedule template {template_id} does not exist or is inactive.')


class ExceptionNotFoundError(NotFoundError):
    def __init__(self, exception_id):
        self.exception_id = exception_id
        super().__init__(f'Schedule exception {exception_id} does not exist.')


class SlotNotFoundError(NotFoundError):
    def __init__(self, slot_id):
        self.slot_id = slot_id
        super().__init__(f'Slot {slot_id} does not exist.')


class StorageError(SchedulingError):
    """Wraps a database failure; the original error is chained as ``__cause__``"""
