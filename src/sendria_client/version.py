"""
Version constants for the Sendria client.
"""

__version__ = "1.0.0"

USER_AGENT = f"sendria-client/{__version__}"
