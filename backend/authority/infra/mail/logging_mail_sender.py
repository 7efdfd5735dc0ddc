"""Mail sender that records messages in the application log."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from authority.services._shared.ports import MailSender

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LoggingMailSender(MailSender):
    """
    Default sender: writes one structured log line per message instead of
    delivering it. The HTML body is not logged, since it embeds a bearer token.

    :param from_name: Display name of the sender.
    :param from_address: Sender address.
    """

    from_name: str
    from_address: str

    @property
    def sender(self) -> str:
        return f'"{self.from_name}" <{self.from_address}>'

    def send(self, to: str, subject: str, html: str) -> None:
        LOGGER.info(
            "mail queued from %s to %s: %s (%d bytes)",
            self.sender,
            to,
            subject,
            len(html.encode()),
        )
