"""
CLI module for the Sendria client.

Provides command-line tools for inspecting captured mail.
"""

from sendria_client.cli.commands import main as commands_main

__all__ = ["commands_main"]
