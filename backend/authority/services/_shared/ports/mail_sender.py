from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class OutgoingMail:
    """A composed message handed to a :class:`MailSender`."""

    to: str
    subject: str
    html: str


class MailSender(Protocol):
    """
    Port for the external mail-sending capability.

    Implementations raise on delivery failure; callers let it propagate.
    """

    def send(self, to: str, subject: str, html: str) -> None: ...


class InMemoryMailSender(MailSender):
    """Collect outgoing mail in an outbox for assertions in tests."""

    def __init__(self) -> None:
        self.outbox: list[OutgoingMail] = []
        self._lock = threading.Lock()

    def send(self, to: str, subject: str, html: str) -> None:
        with self._lock:
            self.outbox.append(OutgoingMail(to=to, subject=subject, html=html))

    def last_to(self, to: str) -> OutgoingMail | None:
        """Return the most recent message sent to ``to``."""
        for mail in reversed(self.outbox):
            if mail.to == to:
                return mail
        return None
