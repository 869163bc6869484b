"""
=============================================================================
SHADOW RESPONSE WRITER ("no-404 writer")
=============================================================================

The trick that makes try-files work.

The generic file server decides "404" deep inside its own logic, and by
then it has already called write_header(404) and started writing an error
body. If that went straight to the client's writer, the response would be
committed and no fallback could be served.

So the file server is handed a ShadowWriter instead of the real one:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    SHADOW WRITER STATE MACHINE                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                       ┌──────────┐                                  │
    │                       │ PENDING  │  status = None                   │
    │                       └────┬─────┘                                  │
    │            write_header(404)│  write_header(other) or write()        │
    │                 ┌───────────┴───────────┐                            │
    │                 ▼                       ▼                            │
    │         ┌──────────────┐        ┌──────────────┐                     │
    │         │  SUPPRESSED  │        │  COMMITTED   │                     │
    │         │ nothing is   │        │ status and   │                     │
    │         │ forwarded,   │        │ body pass    │                     │
    │         │ body dropped │        │ through      │                     │
    │         └──────────────┘        └──────────────┘                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    - Headers ALWAYS go to the real writer's header map, so the caller can
      erase whatever the failed attempt set (Content-Type, nosniff).
    - write() in PENDING commits: a handler that never calls
      write_header() gets the implicit 200, not a 404.
    - COMMITTED is final. A 404 written after the response has started
      is forwarded (and ignored by the real writer), never suppressed.
    - The state is explicit. "No status yet" and "status was 404" can
      never be confused.

=============================================================================
INTERVIEW QUESTIONS
=============================================================================

Q: "Why not let the file server return a status and decide afterwards?"
A: "Because the file server is generic: it writes to whatever writer it is
   given, status first, then body. Wrapping the writer is the only place we
   can intercept without changing it."

Q: "Why are these objects pooled?"
A: "One wrapper per static request adds up on the hottest path of the
   server. Instances are reset and reused instead (see writer_pool.py)."

=============================================================================
"""

from enum import Enum
from typing import Dict, Optional

from ..http.response import ResponseWriter
from ..http.status_codes import HTTPStatus


class WriterState(Enum):
    PENDING = "pending"        # No status observed yet
    SUPPRESSED = "suppressed"  # 404 observed, real writer untouched
    COMMITTED = "committed"    # Non-404 observed and forwarded


class ShadowWriter(ResponseWriter):
    """
    A ResponseWriter that hides a 404 from the writer it wraps.

    Usually obtained from a WriterPool rather than constructed directly:

        with pool.borrow(writer) as shadow:
            file_server(shadow, request)
            if shadow.not_found:
                ...  # writer is still uncommitted
    """

    __slots__ = ("writer", "status", "state")

    def __init__(self, writer: Optional[ResponseWriter] = None):
        self.writer = writer
        self.status: Optional[int] = None
        self.state = WriterState.PENDING

    @property
    def headers(self) -> Dict[str, str]:
        return self.writer.headers

    @property
    def not_found(self) -> bool:
        """True when the wrapped handler answered 404 and it was held back."""
        return self.state is WriterState.SUPPRESSED

    def write_header(self, status: int) -> None:
        if self.state is WriterState.COMMITTED:
            # Already on the wire; the real writer reports the duplicate
            self.writer.write_header(status)
            return

        self.status = status
        if status == HTTPStatus.NOT_FOUND:
            self.state = WriterState.SUPPRESSED
            return
        self.state = WriterState.COMMITTED
        self.writer.write_header(status)

    def write(self, data: bytes) -> int:
        if self.state is WriterState.SUPPRESSED:
            return 0
        # Implicit 200 on the real writer; status stays None
        self.state = WriterState.COMMITTED
        return self.writer.write(data)

    def reset(self) -> None:
        """Drop the wrapped writer and forget the status."""
        self.writer = None
        self.status = None
        self.state = WriterState.PENDING

    def __repr__(self) -> str:
        return f"ShadowWriter(state={self.state.value}, status={self.status})"
