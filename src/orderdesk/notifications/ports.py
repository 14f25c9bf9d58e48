"""Channel ports for order confirmations.

Adapters report the outcome rather than raising for an ordinary delivery
failure: ``{"message_id": ..., "status": "sent" | "failed", "error": ...}``.
The dispatcher treats a raised exception the same as a failed status.
"""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, body: str, html_body: str | None = None) -> dict:
        """Send one email to ``to``; ``html_body`` is optional."""
        ...


class SMSPort(ABC):
    @abstractmethod
    def send(self, to: str, body: str) -> dict:
        """Send one text message to the phone number ``to``."""
        ...
