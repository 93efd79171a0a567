"""Thin async wrapper around the ``ia`` command-line upload tool."""

import asyncio
import logging
from pathlib import Path

from ..exceptions import UploadToolError

logger = logging.getLogger(__name__)


class IATool:
    """Run ``ia`` commands without blocking the event loop.

    Attributes:
        _executable: Name or path of the tool.
    """

    def __init__(self, executable: str = "ia"):
        self._executable = executable

    async def _run(self, *args: str) -> tuple[int, bytes, bytes]:
        """Execute the tool with the given arguments.

        Returns:
            Tuple of (returncode, stdout, stderr).

        Raises:
            UploadToolError: If the tool is not installed or cannot be started.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self._executable,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise UploadToolError(f"{self._executable} executable not found") from e
        except OSError as e:
            raise UploadToolError(f"Failed to execute {self._executable}") from e

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            process.kill()
            raise

        return process.returncode or 0, stdout or b"", stderr or b""

    async def version(self) -> str:
        """Return the installed tool's version string.

        Raises:
            UploadToolError: If the tool is missing or reports an error.
        """
        rc, stdout, stderr = await self._run("--version")
        if rc != 0:
            raise UploadToolError(
                "Could not get upload tool version.",
                return_code=rc,
                output=stderr.decode(errors="replace"),
            )
        return stdout.decode(errors="replace").strip()

    async def upload(self, ia_identifier: str, file_path: Path, show: str) -> None:
        """Upload one file into a remote item.

        Raises:
            UploadToolError: If the tool fails.
        """
        rc, stdout, stderr = await self._run("upload", ia_identifier, str(file_path))
        if rc != 0:
            output = "\n".join(
                part.decode(errors="replace").strip()
                for part in (stdout, stderr)
                if part
            )
            raise UploadToolError(
                "Upload failed.",
                show=show,
                file_name=file_path.name,
                return_code=rc,
                output=output,
            )
