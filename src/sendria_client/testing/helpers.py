"""
Test helpers for asserting on email sent by the code under test.

Wraps a SendriaClient with polling waits and pytest-style assertions.
Assertion failures call ``pytest.fail`` so they read like normal test failures.
"""

import time
from typing import Callable, List, Optional, Tuple

import pytest
import structlog

from ..client import SendriaClient
from ..config import settings
from ..exceptions import SendriaError
from ..models.message import Message

logger = structlog.get_logger(__name__)


def wait_for(
    condition: Callable[[], bool],
    timeout: float,
    interval: Optional[float] = None,
) -> bool:
    """
    Poll ``condition`` until it returns True or ``timeout`` seconds elapse.

    Returns:
        True if the condition was met, False on timeout
    """
    if interval is None:
        interval = settings.wait_poll_interval_seconds

    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return False


def create_test_email(test_name: str) -> Tuple[str, str]:
    """
    Build a unique subject and body for a test email.

    Returns:
        (subject, body)
    """
    timestamp = int(time.time())
    subject = f"Test Email - {test_name} - {timestamp}"
    body = (
        f"This is a test email for {test_name}\n"
        f"Timestamp: {timestamp}\n"
        f"Test ID: {test_name}-{timestamp}"
    )
    return subject, body


def _has_recipient(message: Message, address: str) -> bool:
    return any(recipient.email == address for recipient in message.to)


class EmailTestClient:
    """
    Test-friendly wrapper around SendriaClient.

    Example:
        def test_signup_sends_welcome(email_test_client):
            signup("alice@example.com")
            msg = email_test_client.assert_email_sent("alice@example.com", "Welcome")
            email_test_client.assert_email_content(msg, "Hi Alice")
    """

    def __init__(self, client: SendriaClient, page_size: int = 100):
        self.client = client
        self.page_size = page_size

    def _messages(self, per_page: Optional[int] = None) -> List[Message]:
        try:
            return self.client.list_messages(1, per_page or self.page_size).messages
        except SendriaError as e:
            pytest.fail(f"Failed to list messages: {e}")

    def _plain_body(self, message: Message) -> str:
        try:
            return self.client.get_message_plain(message.id)
        except SendriaError as e:
            pytest.fail(f"Failed to get message content: {e}")

    def log_messages(self, header: str = "Email messages") -> None:
        """Log a one-line summary of every captured message."""
        try:
            messages = self.client.list_messages(1, self.page_size).messages
        except SendriaError as e:
            logger.warning("email_dump_failed", error=str(e))
            return

        logger.info(header, total=len(messages))
        for index, msg in enumerate(messages, start=1):
            logger.info(
                "captured_email",
                index=index,
                from_address=msg.from_[0].email if msg.from_ else "<empty>",
                to_address=msg.to[0].email if msg.to else "<empty>",
                subject=msg.subject,
            )

    def wait_for_emails(self, count: int, timeout: float = 5.0) -> List[Message]:
        """Wait until at least ``count`` emails arrived; return the newest ``count``."""
        found: List[Message] = []

        def enough() -> bool:
            nonlocal found
            found = self._messages(per_page=count + 10)
            return len(found) >= count

        if wait_for(enough, timeout):
            return found[:count]

        pytest.fail(f"Timeout waiting for {count} emails, got {len(self._messages())}")

    def assert_email_sent(
        self, to: str, subject: str, timeout: float = 3.0
    ) -> Message:
        """Wait for an email to ``to`` with exactly ``subject`` and return it."""
        match: Optional[Message] = None

        def arrived() -> bool:
            nonlocal match
            match = self.find_email(to, subject, per_page=10)
            return match is not None

        if wait_for(arrived, timeout, interval=0.1):
            return match

        available = [
            f"To: {[r.email for r in msg.to]}, Subject: {msg.subject}"
            for msg in self._messages()
        ]
        pytest.fail(
            f"No email found with recipient={to} and subject={subject}\n"
            "Available messages:\n  - " + "\n  - ".join(available)
        )

    def assert_email_content(self, message: Message, *expected_texts: str) -> None:
        """Assert the plain text body contains every expected text."""
        body = self._plain_body(message)
        missing = [text for text in expected_texts if text not in body]
        if missing:
            pytest.fail(f"Email missing expected text: {missing!r}\nEmail body:\n{body}")

    def assert_no_emails_sent(self, wait_time: float = 0.5) -> None:
        """Sleep ``wait_time`` seconds, then assert the mailbox is empty."""
        time.sleep(wait_time)
        messages = self._messages(per_page=10)
        if messages:
            summary = "\n".join(
                f"  - To: {[r.email for r in msg.to]}, Subject: {msg.subject}"
                for msg in messages
            )
            pytest.fail(f"Expected no emails, but found {len(messages)}\n{summary}")

    def get_latest_email(self, timeout: float = 2.0) -> Message:
        """Most recent email; Sendria lists newest first."""
        return self.wait_for_emails(1, timeout)[0]

    def clear_messages(self, retries: int = 3, delay: float = 0.05) -> None:
        """Delete all messages, retrying on connection hiccups."""
        for attempt in range(retries):
            try:
                self.client.delete_all_messages()
                break
            except SendriaError as e:
                if attempt == retries - 1:
                    pytest.fail(f"Failed to clear messages after {retries} attempts: {e}")
                time.sleep(delay)

        # Let the server settle before the next phase sends mail
        time.sleep(delay)

    def count_emails(self) -> int:
        return len(self._messages())

    def find_email(
        self, to: str = "", subject: str = "", per_page: Optional[int] = None
    ) -> Optional[Message]:
        """First email matching recipient and/or subject; empty filters match anything."""
        for message in self._messages(per_page):
            if to and not _has_recipient(message, to):
                continue
            if subject and message.subject != subject:
                continue
            return message
        return None

    def extract_link(self, message: Message, url_pattern: str) -> str:
        """First URL in the plain text body containing ``url_pattern``."""
        body = self._plain_body(message)
        for line in body.splitlines():
            if url_pattern not in line:
                continue
            line = line.strip()
            if line.startswith("http"):
                return line.split()[0]

        pytest.fail(f"No link found matching pattern: {url_pattern}\nEmail body:\n{body}")

    def debug_print_email(self, message: Message) -> None:
        """Log headers and bodies of an email."""
        logger.info(
            "email_debug",
            id=message.id,
            from_addresses=[r.email for r in message.from_],
            to_addresses=[r.email for r in message.to],
            subject=message.subject,
            created_at=message.created_at.isoformat() if message.created_at else None,
        )
        try:
            logger.info("email_debug_plain", body=self.client.get_message_plain(message.id))
        except SendriaError as e:
            logger.warning("email_debug_plain_failed", error=str(e))
        try:
            html = self.client.get_message_html(message.id)
            if html:
                logger.info("email_debug_html", body=html)
        except SendriaError as e:
            logger.warning("email_debug_html_failed", error=str(e))
