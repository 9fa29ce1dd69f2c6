import logging
from typing import Callable

from pydantic import BaseModel

from careerfair.schemas import AppointmentOut, StudentSnapshot

logger = logging.getLogger(__name__)


class RegistrationCompleted(BaseModel):
    student: StudentSnapshot
    appointments: list[AppointmentOut]


Handler = Callable[[RegistrationCompleted], None]


class RegistrationNotifier:
    """
    Fans a completed registration out to the notification collaborators.
    Handler failures are logged and never reach the booking path.
    """

    def __init__(self, handlers: list[Handler] | None = None):
        self.handlers: list[Handler] = list(handlers or [])

    def subscribe(self, handler: Handler) -> Handler:
        self.handlers.append(handler)
        return handler

    def publish(self, event: RegistrationCompleted) -> int:
        delivered = 0
        for handler in self.handlers:
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception(
                    f"[Notify] Handler {getattr(handler, '__name__', handler)!r} failed for {event.student.email}"
                )
        return delivered


def log_registration(event: RegistrationCompleted) -> None:
    companies = sorted({a.company_name or a.company_id for a in event.appointments})
    logger.info(
        f"[Notify] Registration completed: {event.student.first_name} {event.student.last_name} "
        f"<{event.student.email}> booked {len(event.appointments)} appointment(s) with {', '.join(companies)}"
    )


notifier = RegistrationNotifier([log_registration])
