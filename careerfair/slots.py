"""
Time slot generation for the career fair.

The fair runs on a single day inside a fixed window. Each company interviews
in one of two units (interview length plus a 5 minute buffer), and its slots
are laid back to back from the window start for as long as a whole slot
still fits before the window end.
"""
import enum
from dataclasses import dataclass
from datetime import date
from functools import lru_cache

EVENT_DATE = date(2025, 11, 26)
EVENT_NAME = "Career Fair"
WINDOW_START = 9 * 60  # 09:00
WINDOW_END = 17 * 60 + 20  # 17:20
BUFFER_MINUTES = 5


class InterviewUnit(str, enum.Enum):
    STANDARD = "standard"
    QUICK = "quick"

    @property
    def interview_minutes(self) -> int:
        return 25 if self is InterviewUnit.STANDARD else 15

    @property
    def slot_minutes(self) -> int:
        return self.interview_minutes + BUFFER_MINUTES


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class TimeSlot:
    start: int  # minute of day
    end: int

    @property
    def label(self) -> str:
        return f"{format_minutes(self.start)} - {format_minutes(self.end)}"

    def __str__(self):
        return self.label


@lru_cache(maxsize=None)
def generate_slots(duration: int) -> tuple[TimeSlot, ...]:
    """Ordered, non-overlapping slots of ``duration`` minutes within the event window."""
    if duration <= 0:
        raise ValueError(f"Slot duration must be positive, got {duration}")
    slots = []
    start = WINDOW_START
    while start + duration <= WINDOW_END:
        slots.append(TimeSlot(start, start + duration))
        start += duration
    return tuple(slots)


def slots_for_unit(unit: InterviewUnit | str) -> tuple[TimeSlot, ...]:
    return generate_slots(InterviewUnit(unit).slot_minutes)


@lru_cache(maxsize=None)
def slot_labels(unit: InterviewUnit | str) -> tuple[str, ...]:
    return tuple(s.label for s in slots_for_unit(unit))


def is_valid_slot(unit: InterviewUnit | str, label: str) -> bool:
    return label in slot_labels(unit)


def event_info() -> dict:
    return {
        "eventDate": EVENT_DATE.isoformat(),
        "eventName": EVENT_NAME,
        "startTime": format_minutes(WINDOW_START),
        "endTime": format_minutes(WINDOW_END),
        "units": [
            {
                "unit": unit.value,
                "interviewMinutes": unit.interview_minutes,
                "bufferMinutes": BUFFER_MINUTES,
                "slotMinutes": unit.slot_minutes,
                "slots": len(slots_for_unit(unit)),
            }
            for unit in InterviewUnit
        ],
    }
