"""Alert engine package."""

from budget_buddy.alerts.engine import AlertEngine, merge_notifications

__all__ = ["AlertEngine", "merge_notifications"]
