"""
Global pytest fixtures and configuration for test suite.

This module provides reusable fixtures for:
- An in-memory fake Sendria server (httpx.MockTransport)
- Clients wired to the fake server
- Sample email data
- Temporary files
"""

import os
from typing import Dict, List, Optional

import httpx
import pytest

from sendria_client.client import SendriaClient
from sendria_client.config import Settings
from sendria_client.logging_config import setup_logging
from sendria_client.testing.helpers import EmailTestClient
from sendria_client.testing.pytest_plugin import email_test_client  # noqa: F401
from tests.fixtures.emails import SAMPLE_EMAILS


class FakeSendria:
    """
    Minimal in-memory stand-in for the Sendria REST API.

    Messages are kept newest first, like Sendria lists them.
    """

    def __init__(self):
        self.messages: List[Dict] = []
        self.requests: List[httpx.Request] = []
        self.fail_with: Optional[int] = None
        self._next_id = 1

    def add_message(
        self,
        subject: str,
        to: str = "recipient@example.com",
        sender: str = "sender@example.com",
        plain: str = "",
        html: str = "",
        source: str = "",
    ) -> Dict:
        message = {
            "id": self._next_id,
            "sender_envelope": sender,
            "sender_message": sender,
            "recipients_envelope": [to],
            "recipients_message_to": [to],
            "recipients_message_cc": [],
            "recipients_message_bcc": [],
            "subject": subject,
            "source": source
            or f"From: {sender}\nTo: {to}\nSubject: {subject}\n\n{plain}",
            "size": len(source or plain),
            "type": "text/plain",
            "peer": "127.0.0.1:50000",
            "created_at": "2026-02-12T10:30:00",
            "_plain": plain,
            "_html": html,
        }
        self._next_id += 1
        self.messages.insert(0, message)
        return message

    @staticmethod
    def _public(message: Dict) -> Dict:
        return {k: v for k, v in message.items() if not k.startswith("_")}

    def _find(self, message_id: str) -> Optional[Dict]:
        for message in self.messages:
            if str(message["id"]) == message_id:
                return message
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with)

        path = request.url.path
        if path == "/api/messages/":
            if request.method == "DELETE":
                self.messages.clear()
                return httpx.Response(204)
            per_page = int(request.url.params.get("per_page", 0)) or len(self.messages) or 1
            page = max(int(request.url.params.get("page", 1)), 1)
            chunk = self.messages[(page - 1) * per_page : page * per_page]
            pages_total = max(1, -(-len(self.messages) // per_page))
            body = {
                "code": "OK",
                "data": [self._public(m) for m in chunk],
                "meta": {"pages_total": pages_total},
            }
            return httpx.Response(200, json=body)

        resource = path[len("/api/messages/"):]
        if request.method == "DELETE":
            message = self._find(resource)
            if message is None:
                return httpx.Response(404)
            self.messages.remove(message)
            return httpx.Response(204)

        if "/parts/" in resource:
            message_id, cid = resource.split("/parts/", 1)
            return httpx.Response(200, content=f"part {cid} of {message_id}".encode())

        message_id, _, view = resource.partition(".")
        message = self._find(message_id)
        if message is None:
            return httpx.Response(404)
        if view == "json":
            return httpx.Response(200, json={"code": "OK", "data": self._public(message)})
        if view == "plain":
            return httpx.Response(200, text=message["_plain"])
        if view == "html":
            return httpx.Response(200, text=message["_html"])
        if view in ("source", "eml"):
            return httpx.Response(200, text=message["source"])
        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_sendria() -> FakeSendria:
    """
    Create an empty fake Sendria server.

    Returns:
        FakeSendria instance
    """
    return FakeSendria()


@pytest.fixture
def sendria_client(fake_sendria):
    """
    SendriaClient wired to the fake server, no auth, no retry delay.

    Yields:
        SendriaClient instance
    """
    client = SendriaClient(
        base_url="http://sendria.test",
        username="",
        password="",
        max_retries=1,
        retry_delay=0,
        transport=fake_sendria.transport(),
    )
    yield client
    client.close()


@pytest.fixture
def email_helper(sendria_client) -> EmailTestClient:
    """EmailTestClient on top of the fake server."""
    return EmailTestClient(sendria_client)


@pytest.fixture
def mock_settings() -> Settings:
    """
    Create mock settings for testing with safe defaults.

    Returns:
        Settings instance with test configuration
    """
    return Settings(
        url="http://sendria.test",
        log_level="WARNING",
        log_json=False,
        max_mime_depth=8,
    )


@pytest.fixture
def tmp_eml_file(tmp_path):
    """
    Create temporary .eml file for file-based tests.

    Args:
        tmp_path: pytest's temporary directory fixture

    Returns:
        Path to temporary .eml file
    """
    eml_path = tmp_path / "test_email.eml"
    eml_path.write_bytes(SAMPLE_EMAILS["attachment"])
    return str(eml_path)


@pytest.fixture(autouse=True)
def reset_env_vars():
    """
    Reset environment variables before each test.

    This prevents test pollution from env var changes.
    """
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


def pytest_configure(config):
    """
    Configure pytest with custom markers and quiet logging.
    """
    setup_logging(log_level="WARNING", log_json=False)
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (live Sendria + SMTP)"
    )
