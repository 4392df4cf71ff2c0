"""
Bookkeeper - Core Package

Ledger reconciliation and magic-note parsing for a small-business
bookkeeping app. Screens, exports and persistence live elsewhere and
only consume the values produced here.

DESIGN PRINCIPLES:
1. Pure functions over explicit snapshots (no hidden global state)
2. Failures are returned as typed values, never thrown across the boundary
3. Legacy record shapes are normalised once, at the snapshot boundary
4. Nothing persists without explicit user confirmation
5. Every step must be auditable
"""

__version__ = "1.0.0"
__author__ = "Bookkeeper Team"
