"""Output layer: console abstraction."""

from .console import LOG_TAG, ConsoleProtocol, MockConsole, RichConsole, Style

__all__ = ["LOG_TAG", "ConsoleProtocol", "MockConsole", "RichConsole", "Style"]
