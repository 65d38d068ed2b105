"""Target prober — one bounded HTTP GET per call.

Every failure mode is folded into the returned ProbeOutcome; nothing raises
past probe(). Retries are left to the next sweep.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of a single ping."""

    message: str  # "200 OK" or "Error: ..."
    elapsed_ms: int
    ok: bool

    @property
    def summary(self) -> str:
        return f"{self.message} ({self.elapsed_ms}ms)"


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


def probe(url: str, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> ProbeOutcome:
    """GET ``url`` and report the status line (or error) plus latency."""
    t0 = time.perf_counter()
    try:
        with httpx.Client(timeout=timeout_seconds, follow_redirects=True) as client:
            resp = client.get(url)
        return ProbeOutcome(
            message=f"{resp.status_code} {resp.reason_phrase}".strip(),
            elapsed_ms=_elapsed_ms(t0),
            ok=True,
        )
    except httpx.TimeoutException as e:
        return ProbeOutcome(
            message=f"Error: timed out after {timeout_seconds:g}s ({type(e).__name__})",
            elapsed_ms=_elapsed_ms(t0),
            ok=False,
        )
    except Exception as e:
        detail = str(e) or type(e).__name__
        return ProbeOutcome(message=f"Error: {detail}", elapsed_ms=_elapsed_ms(t0), ok=False)
