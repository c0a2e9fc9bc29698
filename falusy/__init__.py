"""
Falusy - personal and small-business finance tracker core.

Expenses, revenues and projects kept live from a remote document
service, mirrored locally for offline display, behind an access gate.
"""

__version__ = "0.1.0"
