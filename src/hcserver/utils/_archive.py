"""Archive tool adapter.

World backups are written by an external archiver process. The default
implementation shells out to 7-Zip (``7z a <destination> <source>``).
"""

import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

import anyio

from hcserver.exceptions import ArchiveError


@runtime_checkable
class Archiver(Protocol):
    """Protocol for tools that pack a directory into an archive file."""

    async def archive(self, destination: Path, source: Path) -> None:
        """Write the contents of ``source`` into the archive ``destination``.

        Args:
            destination: Path of the archive to create.
            source: Directory to archive.

        Raises:
            ArchiveError: If the archive could not be written.
        """
        ...


def _default_windows_executable() -> Path:
    program_files = os.environ.get("ProgramFiles", r"C:\Program Files")  # noqa: SIM112
    return Path(program_files) / "7-Zip" / "7z.exe"


def resolve_seven_zip(executable: str = "7z") -> str | None:
    """Find the 7-Zip executable.

    Looks the name up on PATH first. On Windows, falls back to the default
    install location under Program Files.

    Args:
        executable: Executable name or path.

    Returns:
        The resolved executable path, or None if it cannot be found.
    """
    found = shutil.which(executable)
    if found is not None:
        return found

    if sys.platform == "win32":
        candidate = _default_windows_executable()
        if candidate.is_file():
            return str(candidate)

    return None


@dataclass(frozen=True, slots=True)
class SevenZipArchiver:
    """Archiver that runs ``7z a`` as a subprocess.

    Attributes:
        executable: 7-Zip executable name or path.
    """

    executable: str = "7z"

    async def archive(self, destination: Path, source: Path) -> None:
        """Archive ``source`` into ``destination`` and wait for 7-Zip to exit.

        Raises:
            ArchiveError: If 7-Zip is missing, cannot be started or exits
                with a non-zero code.
        """
        resolved = resolve_seven_zip(self.executable)
        if resolved is None:
            msg = f"7-Zip executable '{self.executable}' not found"
            raise ArchiveError(msg, destination=destination)

        try:
            result = await anyio.run_process(
                [resolved, "a", str(destination), str(source)],
                check=False,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            msg = f"Failed to run 7-Zip: {e}"
            raise ArchiveError(msg, destination=destination) from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            msg = f"7-Zip exited with code {result.returncode}: {stderr}"
            raise ArchiveError(
                msg,
                destination=destination,
                exit_code=result.returncode,
            )
