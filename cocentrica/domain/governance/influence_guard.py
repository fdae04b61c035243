"""Influence and vote eligibility predicates.

Pure functions over trust levels. No state, no I/O.

Governance Rules:
- An actor may act only on members at or below their own level
- A voter may vote only on requests whose target is at or below their level
"""

from __future__ import annotations


def can_influence(actor_level: int, target_level: int) -> bool:
    """Check whether an actor may initiate an action against a target.

    Args:
        actor_level: Level of the member issuing the command.
        target_level: Current level of the member being acted on.

    Returns:
        True iff actor_level >= target_level.
    """
    return actor_level >= target_level


def can_vote(voter_level: int, target_level: int) -> bool:
    """Check whether a member may vote on a request.

    Args:
        voter_level: Level of the voting member.
        target_level: Current level of the request's target member.

    Returns:
        True iff voter_level >= target_level.
    """
    return voter_level >= target_level
