"""Client state package."""

from budget_buddy.state.store import ClientStateStore, reduce

__all__ = ["ClientStateStore", "reduce"]
