"""
Invoicing Kernel -- contractor invoice lifecycle core.

An approval-driven invoice state machine with:
- Quorum-based multi-administrator approval
- Row-locked, retry-safe soft deletion
- Deterministic cash / equity split computation
- Exactly-once consolidated payment batches
"""

__version__ = "0.1.0"
