# ruff: noqa: TC003  # Path needed at runtime for dataclass field
"""CLI context for global state management.

The CLIContext is set once by the meta command and made available to all
subcommands via contextvars.
"""

import contextvars
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from hcserver.config import Config

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


_current_cli_context: contextvars.ContextVar["CLIContext | None"] = (
    contextvars.ContextVar("cli_context", default=None)
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI context with configuration and options.

    Attributes:
        config: Loaded configuration object.
        root: Resolved server root directory.
        config_error: Error message if config loading failed.
        logger: Structured logger (writes to the log file only).
    """

    config: Config = field(repr=False)
    root: Path = field(default_factory=lambda: Path("server").resolve())
    config_error: str | None = None
    logger: "FilteringBoundLogger | None" = field(default=None, repr=False)

    @classmethod
    def get_current(cls) -> "CLIContext":
        """Get current active CLIContext, or create a default if not set.

        Returns:
            The currently active CLIContext, or a default instance if none is set.
        """
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx

        default_config = Config.from_dict({})
        return cls(
            config=default_config,
            root=Path(default_config.server.root).resolve(),
        )

    @classmethod
    def set_current(cls, ctx: "CLIContext") -> None:
        """Set the current active CLIContext."""
        _ = _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Reset to default context.

        This is primarily useful for testing to ensure a clean state between tests.
        """
        _ = _current_cli_context.set(None)
