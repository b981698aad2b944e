"""Sync dispatcher package."""

from budget_buddy.sync.dispatcher import SyncDispatcher

__all__ = ["SyncDispatcher"]
