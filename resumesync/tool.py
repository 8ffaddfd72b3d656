"""Wrappers around the external transfer tool and local filesystem commands."""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
import tempfile
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import ToolProfile
from .exceptions import (
    DispatchError,
    ExecutableNotFoundError,
    ListingError,
    ListingParseError,
)
from .sync.listing import Entry, parse_structured_line
from .sync.paths import TransferRoot
from .sync.probes import ProbeStatus

logger = logging.getLogger(__name__)


@dataclass
class RemoteDescription:
    """Result of a single-entry remote listing."""

    status: ProbeStatus
    entry: Optional[Entry] = None
    message: str = ""


class TransferTool:
    """Capability surface of the external point-to-point transfer tool.

    Every capability is one invocation of the tool executable. Argument
    conventions come from a :class:`ToolProfile`.
    """

    def __init__(self, tool_path: str, profile: Optional[ToolProfile] = None):
        """Initialize the tool wrapper.

        Args:
            tool_path: Executable name or path
            profile: Argument conventions (defaults apply if omitted)
        """
        self.tool_path = tool_path
        self.profile = profile or ToolProfile()
        self._not_found_re = re.compile(self.profile.not_found_pattern, re.IGNORECASE)

    def check_executable(self) -> str:
        """Resolve the tool executable.

        Returns:
            Absolute path of the executable

        Raises:
            ExecutableNotFoundError: If the tool cannot be run
        """
        resolved = shutil.which(self.tool_path)
        if resolved is None:
            raise ExecutableNotFoundError(self.tool_path)
        return resolved

    def _command(self, *args: str) -> list[str]:
        return [self.tool_path, *args]

    def _run(self, cmd: list[str], **kwargs) -> subprocess.CompletedProcess:
        logger.debug("Running: %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                **kwargs,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise ExecutableNotFoundError(self.tool_path) from e

    def list_remote_recursive(self, root: TransferRoot) -> Iterator[str]:
        """Stream the recursive structured listing of a remote tree.

        Lines are yielded as the tool produces them. If the tool exits with a
        non-zero status once its output is consumed, ListingError is raised.
        """
        cmd = self._command(*self.profile.list_args, root.endpoint)
        logger.debug("Listing: %s", " ".join(cmd))
        with tempfile.TemporaryFile(mode="w+", encoding="utf-8") as stderr_file:
            try:
                process = subprocess.Popen(
                    cmd,
                    stdout=subprocess.PIPE,
                    stderr=stderr_file,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    start_new_session=True,
                )
            except (FileNotFoundError, PermissionError) as e:
                raise ExecutableNotFoundError(self.tool_path) from e

            try:
                assert process.stdout is not None
                yield from process.stdout
                returncode = process.wait()
            finally:
                if process.poll() is None:
                    process.terminate()
                    process.wait()
                if process.stdout is not None:
                    process.stdout.close()

            if returncode != 0:
                stderr_file.seek(0)
                message = stderr_file.read().strip()
                raise ListingError(
                    f"Remote listing of {root.endpoint} failed "
                    f"(exit {returncode}): {message}"
                )

    def describe_remote(self, root: TransferRoot, path: str) -> RemoteDescription:
        """Describe a single remote path.

        A non-zero exit with a "not found" style message means the path does
        not exist; any other failure is reported as QUERY_FAILED.
        """
        endpoint = root.endpoint_for(path)
        result = self._run(self._command(*self.profile.describe_args, endpoint))

        if result.returncode != 0:
            message = (result.stderr or result.stdout).strip()
            if self._not_found_re.search(message):
                return RemoteDescription(ProbeStatus.NOT_FOUND, message=message)
            return RemoteDescription(
                ProbeStatus.QUERY_FAILED,
                message=f"exit {result.returncode}: {message}",
            )

        lines = [line for line in result.stdout.splitlines() if line.strip()]
        if not lines:
            return RemoteDescription(
                ProbeStatus.QUERY_FAILED, message="empty describe output"
            )
        try:
            entry = parse_structured_line(lines[0])
        except ListingParseError as e:
            return RemoteDescription(ProbeStatus.QUERY_FAILED, message=str(e))
        return RemoteDescription(ProbeStatus.EXISTS, entry=entry)

    def create_remote_directory(self, root: TransferRoot, path: str) -> None:
        """Create a directory on the remote side.

        Raises:
            DispatchError: If the tool reports a failure
        """
        endpoint = root.endpoint_for(path)
        result = self._run(self._command(*self.profile.mkdir_args, endpoint))
        if result.returncode != 0:
            raise DispatchError(
                f"mkdir {endpoint} failed: {(result.stderr or '').strip()}",
                returncode=result.returncode,
            )

    def transfer_file(
        self,
        source: str,
        destination: str,
        resume: bool = True,
        extra_options: Sequence[str] = (),
    ) -> None:
        """Transfer one file.

        The tool runs in its own session so a terminal interrupt stops the
        control loop without cutting the running transfer short. Its output
        goes straight to the terminal.

        Args:
            source: Source endpoint
            destination: Destination endpoint
            resume: Extend or correct an existing partial destination file
            extra_options: Caller options forwarded verbatim

        Raises:
            DispatchError: If the tool exits with a non-zero status
        """
        cmd = self._command(*extra_options)
        if resume:
            cmd.extend(self.profile.resume_args)
        cmd.extend([source, destination])
        logger.debug("Transfer: %s", " ".join(cmd))
        try:
            returncode = subprocess.call(cmd, start_new_session=True)
        except (FileNotFoundError, PermissionError) as e:
            raise ExecutableNotFoundError(self.tool_path) from e
        if returncode != 0:
            raise DispatchError(
                f"transfer {source} -> {destination} failed (exit {returncode})",
                returncode=returncode,
            )

    def passthrough(self, args: Sequence[str]) -> int:
        """Run the tool with the caller's arguments unmodified.

        Returns:
            Exit status of the tool
        """
        cmd = self._command(*args)
        logger.debug("Pass-through: %s", " ".join(cmd))
        try:
            return subprocess.call(cmd)
        except (FileNotFoundError, PermissionError) as e:
            raise ExecutableNotFoundError(self.tool_path) from e


class LocalFilesystem:
    """Local filesystem primitives used by the sync engine."""

    def list_recursive(self, root: str) -> Iterator[str]:
        """Stream ``ls -lR`` output for a local directory.

        A root given as a symlink is followed (``-H``); links found inside
        the tree are listed as links.

        Raises:
            ListingError: If ``ls`` fails
        """
        env = {**os.environ, "LC_ALL": "C"}
        cmd = ["ls", "-lRH", root]
        logger.debug("Listing: %s", " ".join(cmd))
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            env=env,
            start_new_session=True,
        )
        try:
            assert process.stdout is not None
            yield from process.stdout
            returncode = process.wait()
        finally:
            if process.poll() is None:
                process.terminate()
                process.wait()
            if process.stdout is not None:
                process.stdout.close()

        # ls exits 1 for minor problems (unreadable subdirectory)
        if returncode > 1:
            raise ListingError(f"Local listing of {root} failed (exit {returncode})")

    def stat_size(self, path: str) -> int:
        """Size of a local file in bytes via ``os.stat``."""
        return os.stat(path).st_size

    def measure_size(self, path: str) -> int:
        """Size of a local file by seeking to its end."""
        with open(path, "rb") as f:
            return f.seek(0, os.SEEK_END)

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def make_directory(self, path: str) -> None:
        """Create a directory including missing parents.

        Raises:
            DispatchError: If the directory cannot be created
        """
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DispatchError(f"mkdir {path} failed: {e}") from e
