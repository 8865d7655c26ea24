from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


class ForwardError(RuntimeError):
    """Building or running the remote command failed."""


@dataclass
class CommandResult:
    returncode: int
    stdout: str
    stderr: str


def split_target(target: str) -> Tuple[str, Optional[int]]:
    """Split ``user@host:port`` into ``("user@host", port)``."""
    target = target.strip()
    host, sep, port = target.rpartition(":")
    if sep and host and port.isdigit():
        return host, int(port)
    return target, None


class SSHRunner:
    """Runs one command on a remote host through the system ``ssh`` client."""

    def __init__(self, ssh_binary: str = "ssh", connect_timeout_s: int = 5) -> None:
        self._ssh = ssh_binary
        self._connect_timeout_s = connect_timeout_s

    def build_args(self, target: str, identity_path: Optional[str], command: str) -> List[str]:
        host, port = split_target(target)
        if not host:
            raise ForwardError("Missing SSH target")
        args = [
            self._ssh,
            "-o", "BatchMode=yes",
            "-o", f"ConnectTimeout={self._connect_timeout_s}",
        ]
        if identity_path:
            args += ["-o", "IdentitiesOnly=yes", "-i", os.path.expanduser(identity_path)]
        if port is not None:
            args += ["-p", str(port)]
        args += [host, command]
        return args

    def run(
        self,
        target: str,
        identity_path: Optional[str],
        command: str,
        stdin: str = "",
        timeout_s: float = 30.0,
    ) -> CommandResult:
        args = self.build_args(target, identity_path, command)
        logger.debug("ssh %s (cmd len=%d)", target, len(command))
        try:
            proc = subprocess.run(
                args,
                input=stdin,
                capture_output=True,
                text=True,
                timeout=timeout_s,
            )
        except FileNotFoundError as e:
            raise ForwardError(f"ssh not found: {self._ssh}") from e
        except OSError as e:
            raise ForwardError(str(e) or f"ssh failed to start: {self._ssh}") from e
        except subprocess.TimeoutExpired as e:
            raise ForwardError(f"ssh timed out after {timeout_s:g}s") from e

        result = CommandResult(proc.returncode, proc.stdout or "", proc.stderr or "")
        if result.returncode != 0:
            detail = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
            raise ForwardError(detail)
        return result
