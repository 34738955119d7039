"""One-way diagnostic channel from the agent to its host."""

from typing import List, Optional, Protocol

from rich.console import Console


class MessageReporter(Protocol):
    def report_message(self, message: str) -> None:
        ...


class NullReporter:
    """Discards every message."""

    def report_message(self, message: str) -> None:
        pass


class ConsoleReporter:
    """Prints messages to a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def report_message(self, message: str) -> None:
        self.console.print(f"[dim]{message}[/dim]", highlight=False)


class BufferedReporter:
    """Collects messages until drained, optionally forwarding them."""

    def __init__(self, forward: Optional[MessageReporter] = None):
        self.forward = forward
        self.messages: List[str] = []

    def report_message(self, message: str) -> None:
        self.messages.append(message)
        if self.forward is not None:
            self.forward.report_message(message)

    def drain(self) -> List[str]:
        messages, self.messages = self.messages, []
        return messages
