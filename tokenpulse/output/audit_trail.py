"""Audit trail formatter for fetch transparency.

Summarizes the routes a listing fetch tried: which ones failed, why,
how long each took and which one finally answered.
"""

import logging
from collections import defaultdict
from typing import Any

from ..core.models import AuditEntry

logger = logging.getLogger(__name__)


class AuditTrailFormatter:
    """Formats provider audit entries for display."""

    def format_summary(self, entries: list[AuditEntry]) -> str:
        """
        Format a summary of the audit trail.

        Args:
            entries: Audit entries recorded by a provider

        Returns:
            Formatted string summary
        """
        lines = []
        lines.append("=" * 70)
        lines.append("FETCH AUDIT TRAIL")
        lines.append("=" * 70)
        lines.append("")

        if not entries:
            lines.append("  No requests recorded")
            lines.append("")
            return "\n".join(lines)

        lines.append("ROUTES TRIED")
        lines.append("-" * 40)
        for route, info in self._summarize_routes(entries).items():
            status = "OK" if info["success_count"] > 0 else "FAILED"
            lines.append(f"  {route}: {status}")
            lines.append(f"    - Calls: {info['total_count']} ({info['success_count']} successful)")
            for error in info["errors"][:3]:
                lines.append(f"    - Error: {error}")
        lines.append("")

        lines.append("REQUEST LOG")
        lines.append("-" * 40)
        for entry in entries:
            marker = "+" if entry.success else "x"
            duration = f"{entry.duration_ms}ms" if entry.duration_ms is not None else "-"
            status = entry.status_code if entry.status_code is not None else "-"
            line = (
                f"  [{marker}] {entry.timestamp.strftime('%H:%M:%S')} "
                f"{entry.action:<6} {entry.route or '-'} status={status} {duration}"
            )
            if entry.error_message:
                line += f" ({entry.error_message})"
            lines.append(line)
        lines.append("")

        winner = next((e for e in reversed(entries) if e.success), None)
        if winner:
            lines.append(f"Answered by: {winner.route}")
        else:
            lines.append("Answered by: none (all routes failed)")
        lines.append("")
        return "\n".join(lines)

    def _summarize_routes(self, entries: list[AuditEntry]) -> dict[str, dict[str, Any]]:
        """Group entries by route, in first-seen order."""
        summary: dict[str, dict[str, Any]] = defaultdict(
            lambda: {"total_count": 0, "success_count": 0, "errors": []}
        )
        for entry in entries:
            info = summary[entry.route or "unknown"]
            info["total_count"] += 1
            if entry.success:
                info["success_count"] += 1
            elif entry.error_message:
                info["errors"].append(entry.error_message)
        return dict(summary)

    def format_to_file(self, entries: list[AuditEntry], filepath: str) -> None:
        """Write audit trail to file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.format_summary(entries))
