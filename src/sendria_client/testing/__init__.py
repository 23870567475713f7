# Test harness for code that sends email through Sendria

from .helpers import EmailTestClient, create_test_email, wait_for

__all__ = [
    "EmailTestClient",
    "create_test_email",
    "wait_for",
]
