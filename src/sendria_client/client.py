"""
HTTP client for the Sendria REST API.

Sendria is an SMTP server for development and testing environments that
catches emails and exposes them over a web interface and REST API instead of
delivering them to real recipients.

Key features:
- List, fetch and delete captured messages
- Plain/HTML/source/EML views and attachment downloads
- Local MIME decomposition of a message's raw source
- Retry logic with exponential backoff on transport errors
"""

import time
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

import httpx
import structlog

from .config import settings
from .exceptions import SendriaAPIError, SendriaConnectionError
from .models.api_models import APIMessage, APIResponse
from .models.message import Message, MessageList, Recipient
from .version import USER_AGENT

logger = structlog.get_logger(__name__)

CREATED_AT_FORMAT = "%Y-%m-%dT%H:%M:%S"
MESSAGES_PATH = "/api/messages/"


def parse_created_at(value: Optional[str]) -> Optional[datetime]:
    """Parse Sendria's created_at timestamp, ignoring fractional seconds."""
    if not value:
        return None
    try:
        return datetime.strptime(value.split(".")[0], CREATED_AT_FORMAT)
    except ValueError:
        return None


def message_from_api(api_msg: APIMessage) -> Message:
    """Convert Sendria's wire representation into a Message."""
    return Message(
        id=str(api_msg.id),
        subject=api_msg.subject or "",
        to=[Recipient(email=email) for email in api_msg.recipients_message_to],
        from_=[Recipient(email=api_msg.sender_message or "")],
        created_at=parse_created_at(api_msg.created_at),
        size=api_msg.size,
        type=api_msg.type or "",
        source=api_msg.source or "",
    )


class SendriaClient:
    """
    Client for one Sendria instance.

    Holds a pooled httpx.Client; use as a context manager or call close().

    Example:
        with SendriaClient("http://localhost:1080") as client:
            for msg in client.list_messages(page=1, per_page=10).messages:
                print(msg.subject)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or settings.url).rstrip("/")
        self.username = username if username is not None else settings.username
        self.password = password if password is not None else settings.password
        self.timeout = timeout if timeout is not None else settings.timeout_seconds
        self.max_retries = max(
            1, max_retries if max_retries is not None else settings.max_retries
        )
        self.retry_delay = (
            retry_delay if retry_delay is not None else settings.retry_delay_seconds
        )

        auth = None
        if self.username and self.password:
            auth = httpx.BasicAuth(self.username, self.password)

        self._http = httpx.Client(
            base_url=self.base_url,
            auth=auth,
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            limits=httpx.Limits(
                max_connections=settings.max_connections,
                max_keepalive_connections=settings.max_connections,
                keepalive_expiry=settings.keepalive_expiry_seconds,
            ),
            transport=transport,
        )

        self.logger = logger.bind(base_url=self.base_url)

    def __enter__(self) -> "SendriaClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        expected_status: Iterable[int] = (200,),
    ) -> httpx.Response:
        """
        Perform a request with retry on transport errors.

        Raises:
            SendriaConnectionError: Transport failed on every attempt
            SendriaAPIError: Unexpected status code
        """
        for attempt in range(self.max_retries):
            try:
                response = self._http.request(method, path, params=params)
                break
            except httpx.TransportError as e:
                if attempt == self.max_retries - 1:
                    self.logger.error(
                        "sendria_request_failed_after_retries",
                        method=method,
                        path=path,
                        error=str(e),
                        attempts=self.max_retries,
                    )
                    raise SendriaConnectionError(
                        f"{method} {path} failed: {e}"
                    ) from e

                wait_time = self.retry_delay * (2 ** attempt)
                self.logger.warning(
                    "sendria_request_retry",
                    method=method,
                    path=path,
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                    error=str(e),
                    wait_seconds=wait_time,
                )
                time.sleep(wait_time)

        if response.status_code not in expected_status:
            self.logger.warning(
                "sendria_unexpected_status",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise SendriaAPIError(
                f"unexpected status code: {response.status_code}",
                status_code=response.status_code,
            )

        return response

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> APIResponse:
        response = self._request("GET", path, params=params)
        try:
            api_response = APIResponse.model_validate(response.json())
        except ValueError as e:
            raise SendriaAPIError(
                f"decoding response: {e}", status_code=response.status_code
            ) from e

        if api_response.code != "OK":
            raise SendriaAPIError(
                f"API error: {api_response.code}",
                status_code=response.status_code,
                code=api_response.code,
            )
        return api_response

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def list_messages(self, page: int = 0, per_page: int = 0) -> MessageList:
        """
        Retrieve one page of messages, newest first.

        Args:
            page: 1-based page number (omitted when <= 0)
            per_page: Page size (omitted when <= 0)
        """
        params = {}
        if page > 0:
            params["page"] = page
        if per_page > 0:
            params["per_page"] = per_page

        api_response = self._get_json(MESSAGES_PATH, params=params or None)
        try:
            api_messages = [APIMessage.model_validate(m) for m in api_response.data or []]
        except ValueError as e:
            raise SendriaAPIError(f"decoding messages: {e}") from e

        messages = [message_from_api(m) for m in api_messages]

        total = len(messages)
        if api_response.meta is not None:
            total = api_response.meta.pages_total * per_page  # approximate

        self.logger.debug("messages_listed", count=len(messages), page=page)
        return MessageList(messages=messages, total=total, page=page, per_page=per_page)

    def get_message(self, message_id: str) -> Message:
        """Retrieve a message's metadata and raw source."""
        api_response = self._get_json(f"{MESSAGES_PATH}{message_id}.json")
        try:
            api_msg = APIMessage.model_validate(api_response.data)
        except ValueError as e:
            raise SendriaAPIError(f"decoding message: {e}") from e
        return message_from_api(api_msg)

    def get_parsed_message(self, message_id: str) -> Message:
        """
        Retrieve a message and decompose its source into parts and attachments.

        Falls back to the ``.source`` endpoint when the JSON carries no source.
        """
        message = self.get_message(message_id)
        if not message.source:
            message.source = self.get_message_source(message_id)
        return message.decompose()

    def get_message_plain(self, message_id: str) -> str:
        """Retrieve the plain text part of a message."""
        return self._request("GET", f"{MESSAGES_PATH}{message_id}.plain").text

    def get_message_html(self, message_id: str) -> str:
        """Retrieve the HTML part of a message."""
        return self._request("GET", f"{MESSAGES_PATH}{message_id}.html").text

    def get_message_source(self, message_id: str) -> str:
        """Retrieve the raw source of a message."""
        return self._request("GET", f"{MESSAGES_PATH}{message_id}.source").text

    def get_message_eml(self, message_id: str) -> bytes:
        """Retrieve the message as an .eml file."""
        return self._request("GET", f"{MESSAGES_PATH}{message_id}.eml").content

    def get_attachment(self, message_id: str, cid: str) -> bytes:
        """Download a message attachment by Content-ID."""
        return self._request("GET", f"{MESSAGES_PATH}{message_id}/parts/{cid}").content

    def delete_message(self, message_id: str) -> None:
        """Delete a single message."""
        self._request(
            "DELETE", f"{MESSAGES_PATH}{message_id}", expected_status=(200, 204)
        )
        self.logger.debug("message_deleted", message_id=message_id)

    def delete_all_messages(self) -> None:
        """Delete every captured message."""
        self._request("DELETE", MESSAGES_PATH, expected_status=(200, 204))
        self.logger.debug("all_messages_deleted")
