"""
LeadEngine structured logging - operator-grade telemetry for searches.

Answers three questions:
1. What phase is the search in?
2. How many candidates came back, and how many survived?
3. Why was a candidate dropped?
"""

import sys
from datetime import UTC, datetime

# Force line buffering for immediate output (important on Windows/PowerShell)
try:
    sys.stdout.reconfigure(line_buffering=True)  # type: ignore
except Exception:
    pass  # Fallback for non-reconfigurable streams


def _print(*args: object, **kwargs: object) -> None:
    """Print with immediate flush."""
    print(*args, **kwargs, flush=True)


def _eprint(*args: object, **kwargs: object) -> None:
    """Print to stderr with immediate flush."""
    print(*args, **kwargs, file=sys.stderr, flush=True)


class ProgressLogger:
    """
    Structured progress logger for LeadEngine searches.

    Quiet by default: the query string and per-reason drops are verbose only.
    """

    def __init__(self, run_id: str, verbose: bool = False, quiet: bool = False):
        self.run_id = run_id
        self.verbose = verbose
        self.quiet = quiet
        self.start_time = datetime.now(UTC)
        self.phase_times: dict[str, datetime] = {}

    def _elapsed(self) -> float:
        return (datetime.now(UTC) - self.start_time).total_seconds()

    def phase(self, name: str, detail: str = "") -> None:
        """Log a major phase transition."""
        now = datetime.now(UTC)
        self.phase_times[name] = now
        if self.quiet:
            return
        elapsed = (now - self.start_time).total_seconds()

        if detail:
            _print(f"[Phase] {name}: {detail} ({elapsed:.1f}s)")
        else:
            _print(f"[Phase] {name} ({elapsed:.1f}s)")

    def query(self, search_query: str, excluded: int = 0) -> None:
        """Log the composed search query (verbose only)."""
        if self.verbose:
            truncated = search_query[:120] + "..." if len(search_query) > 120 else search_query
            _print(f"  [Query] {truncated}")
            if excluded:
                _print(f"  [Query] excluding {excluded} known username(s)")

    def page(self, current: int, total: int) -> None:
        """Log a "load more" page (e.g., page 2/3)."""
        if not self.quiet:
            _print(f"[Page {current}/{total}]")

    def response(self, chars: int, sources: int) -> None:
        """Log the raw provider response size."""
        if not self.quiet:
            _print(f"  [Response] {chars} chars, {sources} source(s)")

    def extracted(self, candidates: int, kept: int, dropped: int = 0) -> None:
        """Log filtering results."""
        if self.quiet:
            return
        if dropped > 0:
            _print(f"  [Extracted] {candidates} candidates ({kept} kept, {dropped} dropped)")
        else:
            _print(f"  [Extracted] {candidates} candidates ({kept} kept)")

    def rejections(self, reasons: dict[str, int]) -> None:
        """Log drop counts by reason (verbose only)."""
        if self.verbose and reasons:
            reason_str = ", ".join(f"{k}={v}" for k, v in sorted(reasons.items()))
            _print(f"    [Skip] {reason_str}")

    def finish(self, leads: int, output: str = "") -> None:
        """Log search completion."""
        if self.quiet:
            return
        elapsed = self._elapsed()
        minutes = int(elapsed // 60)
        seconds = int(elapsed % 60)

        _print(f"\n[LeadEngine] Search complete in {minutes}m{seconds}s")
        _print(f"  Leads: {leads}")
        if output:
            _print(f"  Output: {output}")

    def error(self, msg: str) -> None:
        """Log an error."""
        _eprint(f"[Error] {msg}")

    def warning(self, msg: str) -> None:
        """Log a warning."""
        _eprint(f"[Warning] {msg}")
