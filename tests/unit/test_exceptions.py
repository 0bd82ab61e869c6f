# pyright: reportAny=false
"""Unit tests for hcserver exceptions.

These tests verify that exception constructors correctly store context
attributes and that callers can catch errors by family.
"""

from pathlib import Path

import pytest

from hcserver.exceptions import (
    AlreadyOnlineError,
    AlreadyStartingError,
    ArchiveError,
    ConfigLoadError,
    ConfigValidationError,
    HCServerError,
    LifecycleError,
    NotOnlineError,
    RconCommandError,
    RconConnectionError,
    RconError,
    WorldResetError,
)


class TestLifecycleErrors:
    @pytest.mark.parametrize(
        "error_class", [AlreadyStartingError, AlreadyOnlineError, NotOnlineError]
    )
    def test_caught_as_lifecycle_error(self, error_class: type[LifecycleError]) -> None:
        with pytest.raises(LifecycleError) as exc_info:
            raise error_class("nope", state="online")

        assert exc_info.value.state == "online"

    def test_state_defaults_to_none(self) -> None:
        assert NotOnlineError("Server is already offline").state is None


class TestRconErrors:
    def test_connection_error_stores_endpoint(self) -> None:
        cause = ConnectionRefusedError("refused")

        error = RconConnectionError("failed", host="localhost", port=25575, cause=cause)

        assert isinstance(error, RconError)
        assert error.host == "localhost"
        assert error.port == 25575
        assert error.cause is cause

    def test_command_error_stores_command(self) -> None:
        error = RconCommandError("timed out", command="list")

        assert error.command == "list"
        assert error.cause is None


class TestWorldErrors:
    def test_archive_error_context(self) -> None:
        error = ArchiveError("7-Zip failed", destination=Path("a.zip"), exit_code=2)

        assert error.destination == Path("a.zip")
        assert error.exit_code == 2

    def test_reset_error_names_step(self) -> None:
        cause = ArchiveError("7-Zip failed")

        error = WorldResetError("could not archive", step="archive", cause=cause)

        assert error.step == "archive"
        assert error.cause is cause


class TestConfigErrors:
    def test_load_error_context_defaults_to_none(self) -> None:
        error = ConfigLoadError("Simple error")

        assert error.path is None
        assert error.line is None
        assert error.column is None

    def test_validation_error_context(self) -> None:
        error = ConfigValidationError(
            "bad port", key="rcon.port", value=0, expected="greater_than_equal"
        )

        assert error.key == "rcon.port"
        assert error.value == 0
        assert error.expected == "greater_than_equal"
        assert error.source is None

    def test_all_errors_share_a_base(self) -> None:
        errors = [
            NotOnlineError("x"),
            RconError("x"),
            ArchiveError("x"),
            WorldResetError("x", step="erase"),
            ConfigLoadError("x"),
        ]

        assert all(isinstance(error, HCServerError) for error in errors)
