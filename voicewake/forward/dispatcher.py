from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional

from voicewake.forward.config import ForwardConfig
from voicewake.forward.ssh import ForwardError, SSHRunner

logger = logging.getLogger(__name__)

PROBE_COMMAND = "echo voicewake-ok"


@dataclass(frozen=True)
class ForwardResult:
    ok: bool
    message: str = ""


class ForwardDispatcher:
    """Relays transcripts to the remote command on a small worker pool.

    Nothing here is awaited by the detector: a failed forward is logged and
    recorded in ``last_result``, never raised back to the caller.
    """

    def __init__(
        self,
        runner: Optional[SSHRunner] = None,
        max_workers: int = 2,
        timeout_s: float = 30.0,
    ) -> None:
        self._runner = runner or SSHRunner()
        self._timeout_s = timeout_s
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="voicewake-forward")
        self._lock = threading.Lock()
        self._last_result: Optional[ForwardResult] = None

    @property
    def last_result(self) -> Optional[ForwardResult]:
        with self._lock:
            return self._last_result

    def forward(self, transcript: str, config: ForwardConfig) -> Optional[Future]:
        if not config.should_forward:
            logger.debug("forward skipped (enabled=%s, target set=%s)", config.enabled, config.has_target)
            return None
        try:
            return self._pool.submit(self._run, transcript, config)
        except RuntimeError as e:
            # Pool already shut down.
            logger.warning("voice wake forward dropped: %s", e)
            return None

    def _run(self, transcript: str, config: ForwardConfig) -> ForwardResult:
        try:
            command = config.render(transcript)
            self._runner.run(
                config.target.strip(),
                config.identity_path,
                command,
                stdin=transcript,
                timeout_s=self._timeout_s,
            )
        except ForwardError as e:
            logger.warning("voice wake forward failed: %s", e)
            result = ForwardResult(ok=False, message=str(e))
        except Exception as e:
            logger.exception("voice wake forward crashed")
            result = ForwardResult(ok=False, message=str(e))
        else:
            logger.info("voice wake forward ok (len=%d)", len(transcript))
            result = ForwardResult(ok=True)
        with self._lock:
            self._last_result = result
        return result

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


class ForwardStatus(Enum):
    IDLE = auto()
    CHECKING = auto()
    OK = auto()
    FAILED = auto()


class ConnectivityCheck:
    """Interactive "Test" action for a forward target.

    Runs a harmless probe over the same SSH path the dispatcher uses and
    reports ``idle -> checking -> ok | failed(message)``. A blank target goes
    straight to ``failed`` without contacting the host.
    """

    def __init__(
        self,
        runner: Optional[SSHRunner] = None,
        timeout_s: float = 10.0,
        on_status: Optional[Callable[[ForwardStatus, str], None]] = None,
    ) -> None:
        self._runner = runner or SSHRunner()
        self._timeout_s = timeout_s
        self._on_status = on_status
        self.status = ForwardStatus.IDLE
        self.message = ""

    def _set(self, status: ForwardStatus, message: str = "") -> None:
        self.status = status
        self.message = message
        if self._on_status is not None:
            self._on_status(status, message)

    def run(self, config: ForwardConfig) -> ForwardStatus:
        if not config.has_target:
            self._set(ForwardStatus.FAILED, "Set an SSH target first")
            return self.status

        self._set(ForwardStatus.CHECKING)
        try:
            self._runner.run(
                config.target.strip(),
                config.identity_path,
                PROBE_COMMAND,
                timeout_s=self._timeout_s,
            )
        except ForwardError as e:
            logger.info("forward check failed for %s: %s", config.target, e)
            self._set(ForwardStatus.FAILED, str(e))
        else:
            self._set(ForwardStatus.OK)
        return self.status
