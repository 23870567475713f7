"""
Pattern detection over captured mail.

Classifies test emails into common transactional types (verification,
password reset, welcome, invoice) and extracts the values a test usually
needs from them: links, reset tokens, invoice numbers, amounts, usernames.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern

from .models.message import Message

VERIFICATION = "verification"
PASSWORD_RESET = "password-reset"
WELCOME = "welcome"
INVOICE = "invoice"
OTHER = "other"

EMAIL_TYPES = (VERIFICATION, PASSWORD_RESET, WELCOME, INVOICE, OTHER)

# Checked in order; first match wins
SUBJECT_KEYWORDS = [
    (VERIFICATION, ("verify", "confirm")),
    (PASSWORD_RESET, ("password", "reset")),
    (WELCOME, ("welcome", "thanks for signing up")),
    (INVOICE, ("invoice", "receipt", "payment")),
]

BODY_KEYWORDS = [
    (VERIFICATION, ("verify your email", "confirm your email")),
    (PASSWORD_RESET, ("reset your password", "forgot your password")),
    (WELCOME, ("welcome to", "thank you for joining")),
]

VERIFICATION_LINK_PATTERNS = [
    re.compile(r"https?://\S+/verify\S*"),
    re.compile(r"https?://\S+/confirm\S*"),
    re.compile(r"https?://\S+/activate\S*"),
]

RESET_LINK_PATTERNS = [
    re.compile(r"https?://\S+/reset\S*"),
    re.compile(r"https?://\S+/password\S*reset\S*"),
]

RESET_TOKEN_PATTERNS = [
    re.compile(r"token=([a-zA-Z0-9\-_]+)"),
    re.compile(r"code:\s*([A-Z0-9]{6,8})"),
    re.compile(r"reset code:\s*([A-Z0-9]{6,8})"),
]

INVOICE_NUMBER_PATTERNS = [
    re.compile(r"Invoice\s*#?\s*([A-Z0-9\-]+)"),
    re.compile(r"Order\s*#?\s*([A-Z0-9\-]+)"),
    re.compile(r"Receipt\s*#?\s*([A-Z0-9\-]+)"),
]

AMOUNT_PATTERNS = [
    re.compile(r"\$([0-9,]+\.?[0-9]*)"),
    re.compile(r"USD\s*([0-9,]+\.?[0-9]*)"),
    re.compile(r"Total:\s*\$?([0-9,]+\.?[0-9]*)"),
]

USERNAME_PATTERNS = [
    re.compile(r"Hi\s+([^,\n]+)"),
    re.compile(r"Hello\s+([^,\n]+)"),
    re.compile(r"Dear\s+([^,\n]+)"),
    re.compile(r"Welcome\s+([^,\n]+)"),
]

GENERIC_GREETING_NAMES = {"there", "user", "customer"}


def detect_email_type(subject: str, body: str = "") -> str:
    """
    Classify an email by subject, falling back to the plain text body.

    Returns:
        One of EMAIL_TYPES
    """
    subject_lower = subject.lower()
    for email_type, keywords in SUBJECT_KEYWORDS:
        if any(keyword in subject_lower for keyword in keywords):
            return email_type

    body_lower = body.lower()
    for email_type, keywords in BODY_KEYWORDS:
        if any(keyword in body_lower for keyword in keywords):
            return email_type

    return OTHER


def _first_match(patterns: List[Pattern], content: str) -> str:
    for pattern in patterns:
        match = pattern.search(content)
        if match:
            return match.group(1) if pattern.groups else match.group(0)
    return ""


def extract_verification_link(content: str) -> str:
    return _first_match(VERIFICATION_LINK_PATTERNS, content)


def extract_reset_link(content: str) -> str:
    return _first_match(RESET_LINK_PATTERNS, content)


def extract_reset_token(content: str) -> str:
    return _first_match(RESET_TOKEN_PATTERNS, content)


def extract_invoice_number(content: str) -> str:
    return _first_match(INVOICE_NUMBER_PATTERNS, content)


def extract_amount(content: str) -> str:
    amount = _first_match(AMOUNT_PATTERNS, content)
    return f"${amount}" if amount else ""


def extract_username(content: str) -> str:
    """Greeted name from a welcome email, skipping generic greetings."""
    for pattern in USERNAME_PATTERNS:
        match = pattern.search(content)
        if match:
            username = match.group(1).strip()
            if username not in GENERIC_GREETING_NAMES:
                return username
    return ""


def extract_details(email_type: str, content: str) -> Dict[str, str]:
    """Extract the values relevant to an email type; empty values are dropped."""
    if email_type == VERIFICATION:
        details = {"verification_link": extract_verification_link(content)}
    elif email_type == PASSWORD_RESET:
        details = {
            "reset_link": extract_reset_link(content),
            "reset_token": extract_reset_token(content),
        }
    elif email_type == INVOICE:
        details = {
            "invoice_number": extract_invoice_number(content),
            "amount": extract_amount(content),
        }
    elif email_type == WELCOME:
        details = {"username": extract_username(content)}
    else:
        details = {}
    return {key: value for key, value in details.items() if value}


@dataclass
class EmailStats:
    """Running count of monitored emails per type."""

    counts: Dict[str, int] = field(
        default_factory=lambda: {email_type: 0 for email_type in EMAIL_TYPES}
    )

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def record(self, email_type: str) -> None:
        if email_type not in self.counts:
            email_type = OTHER
        self.counts[email_type] += 1


def analyze_message(message: Message, body: Optional[str] = None) -> Dict[str, object]:
    """
    Classify a message and extract its details.

    Args:
        message: Captured message (decomposed or not)
        body: Plain text body; defaults to the message's decomposed text/plain part
    """
    if body is None:
        body = message.plain_text()
    email_type = detect_email_type(message.subject, body)
    return {
        "type": email_type,
        "details": extract_details(email_type, body),
    }
