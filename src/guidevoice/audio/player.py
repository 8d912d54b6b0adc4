"""Serialized audio playback through a single long-lived worker process."""

import asyncio
import contextlib
import enum
import itertools
import logging
import sys
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from ..tts.errors import WorkerError
from .protocol import QUIT, READY, ProtocolError, Reply, encode_job, parse_reply

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT = 300.0
DEFAULT_STARTUP_TIMEOUT = 10.0
QUIT_TIMEOUT = 2.0


class WorkerState(enum.Enum):
    """Lifecycle of the rendering worker."""

    ABSENT = "absent"
    STARTING = "starting"
    READY = "ready"
    BUSY = "busy"


@dataclass
class PlaybackJob:
    """A queued request to play one audio file."""

    id: int
    path: Path
    future: asyncio.Future[None]


def default_worker_command(volume: float = 1.0) -> list[str]:
    """Command line that launches the pygame rendering worker."""
    return [sys.executable, "-m", "guidevoice.audio.worker", "--volume", str(volume)]


class PlaybackEngine:
    """Play audio files one at a time through an external worker.

    All callers share one FIFO queue. A drain task submits one job at a time
    and waits for the worker to report it finished before starting the next,
    so audio never overlaps. The worker is started on first use and shut
    down after ``idle_timeout`` seconds without jobs.

    Example:
        engine = PlaybackEngine()
        await engine.play(Path("/tmp/hello.mp3"))
        await engine.close()
    """

    def __init__(
        self,
        worker_command: Sequence[str] | None = None,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        startup_timeout: float = DEFAULT_STARTUP_TIMEOUT,
        volume: float = 1.0,
    ) -> None:
        """Initialize the engine without starting a worker.

        Args:
            worker_command: Worker command line (defaults to the pygame worker)
            idle_timeout: Seconds of inactivity before the worker is released
            startup_timeout: Seconds to wait for the worker's ready line
            volume: Playback volume passed to the default worker (0.0-1.0)
        """
        self.worker_command = (
            list(worker_command) if worker_command else default_worker_command(volume)
        )
        self.idle_timeout = idle_timeout
        self.startup_timeout = startup_timeout
        self.state = WorkerState.ABSENT

        self._queue: deque[PlaybackJob] = deque()
        self._current: PlaybackJob | None = None
        self._job_ids = itertools.count(1)
        self._process: asyncio.subprocess.Process | None = None
        self._ready: asyncio.Future[None] | None = None
        self._replies: dict[int, asyncio.Future[Reply]] = {}
        self._reader_task: asyncio.Task[None] | None = None
        self._drain_task: asyncio.Task[None] | None = None
        self._release_task: asyncio.Task[None] | None = None
        self._idle_handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> int:
        """Number of jobs queued or in flight."""
        return len(self._queue) + (1 if self._current is not None else 0)

    def enqueue(self, path: Path | str) -> asyncio.Future[None]:
        """Queue a file for playback.

        Must be called from a running event loop. The worker is started
        lazily if none is running.

        Returns:
            Future resolved when playback finishes. It fails with
            FileNotFoundError for missing files and WorkerError when the
            worker fails or is stopped.
        """
        loop = asyncio.get_running_loop()
        job = PlaybackJob(
            id=next(self._job_ids), path=Path(path), future=loop.create_future()
        )
        self._queue.append(job)
        self._cancel_idle_timer()

        if self._drain_task is None or self._drain_task.done():
            self._drain_task = loop.create_task(self._drain())
        logger.debug(f"Queued playback job {job.id}: {job.path}")
        return job.future

    async def play(self, path: Path | str) -> None:
        """Queue a file and wait until it has been played."""
        await self.enqueue(path)

    async def _drain(self) -> None:
        while self._queue:
            job = self._queue.popleft()
            if job.future.done():
                # Cancelled by the caller while waiting
                continue

            self._current = job
            try:
                reply = await self._run_job(job)
            except WorkerError as e:
                logger.error(f"Playback worker failed: {e}")
                self._fail_pending(e)
                await self._discard_worker()
                return
            except (FileNotFoundError, ProtocolError) as e:
                logger.warning(f"Rejected playback job {job.id}: {e}")
                if not job.future.done():
                    job.future.set_exception(e)
                continue
            finally:
                self._current = None

            if job.future.done():
                continue
            if reply.ok:
                job.future.set_result(None)
            else:
                job.future.set_exception(
                    WorkerError(f"Worker failed to play {job.path}: {reply.reason}")
                )

        self._arm_idle_timer()

    async def _run_job(self, job: PlaybackJob) -> Reply:
        if not await asyncio.to_thread(job.path.is_file):
            raise FileNotFoundError(f"Audio file not found: {job.path}")
        line = encode_job(job.id, job.path)

        process = await self._ensure_worker()
        reply = asyncio.get_running_loop().create_future()
        self._replies[job.id] = reply

        self.state = WorkerState.BUSY
        try:
            assert process.stdin is not None
            process.stdin.write(line)
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            self._replies.pop(job.id, None)
            raise WorkerError(f"Failed to submit job to worker: {e}", e) from e

        result = await reply
        if self._process is process:
            self.state = WorkerState.READY
        return result

    async def _ensure_worker(self) -> asyncio.subprocess.Process:
        if self._process is not None and self._process.returncode is None:
            return self._process

        loop = asyncio.get_running_loop()
        self.state = WorkerState.STARTING
        logger.debug(f"Starting playback worker: {' '.join(self.worker_command)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *self.worker_command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self.state = WorkerState.ABSENT
            raise WorkerError(f"Failed to start playback worker: {e}", e) from e

        self._process = process
        self._ready = loop.create_future()
        self._reader_task = loop.create_task(self._read_replies(process))

        try:
            await asyncio.wait_for(self._ready, timeout=self.startup_timeout)
        except TimeoutError as e:
            await self._discard_worker()
            raise WorkerError(
                f"Playback worker not ready after {self.startup_timeout}s"
            ) from e

        self.state = WorkerState.READY
        logger.debug(f"Playback worker ready (pid {process.pid})")
        return process

    async def _read_replies(self, process: asyncio.subprocess.Process) -> None:
        assert process.stdout is not None
        while True:
            raw = await process.stdout.readline()
            if not raw:
                break
            try:
                reply = parse_reply(raw.decode("utf-8", errors="replace"))
            except ProtocolError as e:
                logger.warning(str(e))
                continue

            if reply.kind == READY:
                if self._ready is not None and not self._ready.done():
                    self._ready.set_result(None)
                continue
            future = self._replies.pop(reply.job_id, None)
            if future is not None and not future.done():
                future.set_result(reply)

        returncode = await process.wait()
        if process is not self._process:
            # Released or replaced; nothing is waiting on this process
            return

        logger.warning(f"Playback worker exited unexpectedly (code {returncode})")
        self._process = None
        self.state = WorkerState.ABSENT
        error = WorkerError(f"Playback worker exited with code {returncode}")
        if self._ready is not None and not self._ready.done():
            self._ready.set_exception(error)
        for future in self._replies.values():
            if not future.done():
                future.set_exception(error)
        self._replies.clear()

    def _fail_pending(self, error: WorkerError) -> None:
        jobs = list(self._queue)
        self._queue.clear()
        if self._current is not None:
            jobs.insert(0, self._current)
        for job in jobs:
            if not job.future.done():
                job.future.set_exception(error)

    def _arm_idle_timer(self) -> None:
        self._cancel_idle_timer()
        if self._process is None:
            return
        loop = asyncio.get_running_loop()
        self._idle_handle = loop.call_later(self.idle_timeout, self._on_idle)

    def _cancel_idle_timer(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None

    def _on_idle(self) -> None:
        self._idle_handle = None
        if self._queue or self._current is not None or self._process is None:
            return
        logger.debug("Playback worker idle, shutting it down")
        self._release_task = asyncio.get_running_loop().create_task(
            self._release_worker()
        )

    async def _release_worker(self) -> None:
        """Ask the worker to quit, killing it if it does not exit in time."""
        process = self._process
        if process is None:
            return
        self._detach()

        if process.returncode is None and process.stdin is not None:
            try:
                process.stdin.write(f"{QUIT}\n".encode())
                await process.stdin.drain()
                process.stdin.close()
            except (BrokenPipeError, ConnectionResetError) as e:
                logger.debug(f"Worker pipe already closed: {e}")

        try:
            await asyncio.wait_for(process.wait(), timeout=QUIT_TIMEOUT)
        except TimeoutError:
            logger.warning("Playback worker ignored quit, killing it")
            await self._kill(process)

    async def _discard_worker(self) -> None:
        process = self._process
        if process is None:
            return
        self._detach()
        await self._kill(process)

    def _detach(self) -> None:
        self._process = None
        self.state = WorkerState.ABSENT
        if self._ready is not None and not self._ready.done():
            self._ready.cancel()
        for future in self._replies.values():
            if not future.done():
                future.cancel()
        self._replies.clear()

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
        await process.wait()

    async def stop(self) -> None:
        """Stop playback now.

        Clears the queue, kills the worker and fails every pending future
        with WorkerError. The next ``enqueue`` starts a fresh worker.
        """
        self._cancel_idle_timer()
        self._fail_pending(WorkerError("Playback stopped"))

        drain_task, self._drain_task = self._drain_task, None
        if drain_task is not None and not drain_task.done():
            drain_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await drain_task

        await self._discard_worker()
        logger.debug("Playback stopped")

    async def close(self) -> None:
        """Let queued jobs finish, then shut the worker down gracefully."""
        self._cancel_idle_timer()
        if self._drain_task is not None and not self._drain_task.done():
            await self._drain_task
        self._cancel_idle_timer()
        await self._release_worker()
        if self._release_task is not None and not self._release_task.done():
            await self._release_task
