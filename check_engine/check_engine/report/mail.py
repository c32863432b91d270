"""Mail transport used by the email handler.

The handler depends only on the :class:`MailTransport` protocol so tests
and alternative relays can supply their own implementation.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

logger = logging.getLogger(__name__)


class MailTransportError(Exception):
    """Raised when a transport rejects or cannot send a message."""


class MailTransport(Protocol):
    """Structural interface for mail delivery."""

    def send(self, message: EmailMessage) -> None:
        """Send *message*, raising :class:`MailTransportError` on failure."""
        ...


class SMTPTransport:
    """Send messages through an SMTP relay.

    A new connection is opened per message.  Every socket operation is
    bounded by *timeout* seconds so a hung relay cannot stall the run.
    """

    def __init__(
        self,
        host: str,
        port: int = 25,
        *,
        timeout: float = 30.0,
        username: str | None = None,
        password: str | None = None,
        starttls: bool = False,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self._username = username
        self._password = password
        self._starttls = starttls

    def send(self, message: EmailMessage) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self._starttls:
                    smtp.starttls()
                if self._username:
                    smtp.login(self._username, self._password or "")
                refused = smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailTransportError(f"SMTP delivery via {self.host}:{self.port} failed: {exc}") from exc

        if refused:
            # Partial success: some recipients accepted the message.
            logger.warning("SMTP relay refused recipients: %s", ", ".join(sorted(refused)))

    def __repr__(self) -> str:
        return f"SMTPTransport(host={self.host!r}, port={self.port})"
