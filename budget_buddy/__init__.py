"""
Budget Buddy - Source Package

A personal finance tracker core: transactions, per-category monthly
budgets, recurring bills, and the alerts derived from them.

DESIGN PRINCIPLES:
1. Alerts are a recomputed view, never stored facts
2. Local state changes first, the remote store catches up
3. One writer per session snapshot (the reducer)
4. Failures degrade to "nothing changed" or "a message is shown"
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Buddy Team"
