"""Line protocol between the playback engine and its rendering worker.

Every message is one UTF-8 line:

    worker -> engine   READY
    engine -> worker   <job-id> <base64 of the utf-8 absolute path>
    worker -> engine   DONE <job-id>
    worker -> engine   FAIL <job-id> <reason>
    engine -> worker   QUIT
"""

import base64
import binascii
from dataclasses import dataclass
from pathlib import Path

READY = "READY"
DONE = "DONE"
FAIL = "FAIL"
QUIT = "QUIT"

MAX_LINE_LENGTH = 8192


class ProtocolError(ValueError):
    """Raised when a protocol line cannot be encoded or parsed."""


@dataclass(frozen=True)
class Reply:
    """A parsed worker reply."""

    kind: str
    job_id: int | None = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.kind == DONE


def encode_job(job_id: int, path: Path | str) -> bytes:
    """Encode a play job as a newline-terminated line.

    Raises:
        ProtocolError: If the encoded line exceeds MAX_LINE_LENGTH
    """
    payload = base64.b64encode(str(Path(path).absolute()).encode("utf-8"))
    line = f"{job_id} ".encode("ascii") + payload + b"\n"
    if len(line) > MAX_LINE_LENGTH:
        raise ProtocolError(f"Encoded path too long ({len(line)} bytes): {path}")
    return line


def decode_job(line: str) -> tuple[int, Path]:
    """Decode a job line into (job id, path).

    Raises:
        ProtocolError: If the line is malformed
    """
    try:
        job_id, payload = line.strip().split(" ", 1)
        path = base64.b64decode(payload, validate=True).decode("utf-8")
        return int(job_id), Path(path)
    except (ValueError, binascii.Error, UnicodeDecodeError) as e:
        raise ProtocolError(f"Malformed job line: {line!r}") from e


def format_reply(kind: str, job_id: int, reason: str = "") -> bytes:
    if kind == FAIL:
        # Reasons must stay on a single line
        reason = " ".join(reason.split()) or "unknown error"
        return f"{FAIL} {job_id} {reason}\n".encode()
    return f"{kind} {job_id}\n".encode()


def parse_reply(line: str) -> Reply:
    """Parse a line written by the worker.

    Raises:
        ProtocolError: If the line is not a known reply
    """
    parts = line.strip().split(" ", 2)
    kind = parts[0]
    if kind == READY and len(parts) == 1:
        return Reply(kind=READY)
    if kind in (DONE, FAIL) and len(parts) >= 2:
        try:
            job_id = int(parts[1])
        except ValueError as e:
            raise ProtocolError(f"Bad job id in reply: {line!r}") from e
        reason = parts[2] if len(parts) > 2 else ""
        return Reply(kind=kind, job_id=job_id, reason=reason)
    raise ProtocolError(f"Unknown worker reply: {line!r}")
