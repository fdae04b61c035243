"""
Domain layer - Pure governance logic for Cocentrica.

This layer contains:
- Domain models (Member, LevelChangeRequest, Vote, history, mode, invites)
- Governance rules (influence guard, rule engine, per-operation context)
- Domain exceptions

CRITICAL: This layer must NOT import from application, infrastructure, or
bootstrap. It performs no I/O.
"""

from cocentrica.domain.exceptions import CocentricaError

__all__: list[str] = ["CocentricaError"]
