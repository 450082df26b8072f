"""Process-lifetime insight ledger and memo rendering."""
from __future__ import annotations
import threading
from typing import Iterator, List, Tuple

NO_INSIGHTS_MESSAGE = "No business insights have been discovered yet."
MEMO_HEADER = "📊 Business Intelligence Memo 📊\n\nKey Insights Discovered:\n\n"
SUMMARY_TEMPLATE = (
    "\n\nSummary:\n"
    "Analysis has revealed {count} key business insights that suggest "
    "opportunities for strategic optimization and growth."
)


class InsightLedger:
    """Append-only ordered sequence of insight strings.

    Never persisted, no dedup, no size cap.
    """

    def __init__(self):
        self._insights: List[str] = []
        self._lock = threading.Lock()

    def append(self, text: str) -> None:
        with self._lock:
            self._insights.append(text)

    def snapshot(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._insights)

    def __len__(self) -> int:
        with self._lock:
            return len(self._insights)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def synthesize(self) -> str:
        """Render the memo: header, one bullet per insight, summary when >1."""
        insights = self.snapshot()
        if not insights:
            return NO_INSIGHTS_MESSAGE
        memo = MEMO_HEADER + "\n".join(f"- {insight}" for insight in insights)
        if len(insights) > 1:
            memo += SUMMARY_TEMPLATE.format(count=len(insights))
        return memo
