"""Output sink implementations for the supervisor system.

This module provides concrete implementations of the OutputSink protocol
for displaying server output and supervisor messages.
"""

import re
from typing import Literal, final

from rich.console import Console
from rich.style import Style
from rich.text import Text

from ._protocol import MessageLevel

# [13:04:59] [Server thread/INFO]: Done (3.2s)! For help, type "help"
_LOG_LINE_PATTERN = re.compile(
    r"^\[(\d+):(\d+):(\d+)\]\s+\[([\w \d#-]+)/(\w+)\]:\s+(.+)$"
)


@final
class ConsoleOutputSink:
    """Output sink that writes to the terminal with rich styling.

    Minecraft log lines (``[hh:mm:ss] [thread/LEVEL]: message``) are split
    into their parts and coloured by level:
    - WARN: Yellow
    - ERROR/FATAL: Red
    - Everything else: Cyan thread name, default message

    Other stdout lines are printed as is, stderr lines in dim red, and
    supervisor messages in bold.
    """

    __slots__ = ("_console", "_level_styles", "_message_styles", "_stderr_style")

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the output sink.

        Args:
            console: Rich Console instance for output. If None, creates a new one.
        """
        self._console = console or Console(highlight=False)
        self._stderr_style = Style(color="red", dim=True)
        self._level_styles: dict[str, Style] = {
            "WARN": Style(color="yellow"),
            "ERROR": Style(color="red"),
            "FATAL": Style(color="red", bold=True),
        }
        self._message_styles: dict[str, Style] = {
            "info": Style(bold=True),
            "warning": Style(color="yellow", bold=True),
            "error": Style(color="red", bold=True),
        }

    def format_line(self, stream: Literal["stdout", "stderr"], line: str) -> Text:
        """Build the styled text for one line of server output."""
        if stream == "stderr":
            return Text(line, style=self._stderr_style)

        match = _LOG_LINE_PATTERN.match(line)
        if match is None:
            return Text(line)

        hours, minutes, seconds, thread, level, message = match.groups()
        level_style = self._level_styles.get(level)

        text = Text()
        _ = text.append(f"[{hours}:{minutes}:{seconds}] ", style=Style(dim=True))
        _ = text.append(
            f"[{thread}/{level}]",
            style=level_style or Style(color="cyan"),
        )
        _ = text.append(": ")
        _ = text.append(message, style=level_style or Style())
        return text

    async def write_line(
        self,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        """Write a line of server output.

        Args:
            stream: Which output stream the line came from.
            line: The output line (without trailing newline).
        """
        self._console.print(self.format_line(stream, line))

    async def write_message(
        self,
        message: str,
        *,
        level: MessageLevel = "info",
    ) -> None:
        """Write a supervisor message in bold.

        Args:
            message: Human-readable message.
            level: Severity of the message.
        """
        self._console.print(Text(message, style=self._message_styles[level]))
