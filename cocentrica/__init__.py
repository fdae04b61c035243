"""
Cocentrica - Trust-Level Membership Governance

A membership of five trust levels where every level change is proposed,
voted on by eligible members, and applied only once a quorum is reached.

Governance Truths:
- Nobody acts on a member above their own level
- Every applied level change leaves a permanent audit record
- A request is applied at most once
- The Core is seeded during bootstrap, then governed forever after
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
