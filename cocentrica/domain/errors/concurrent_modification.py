"""Concurrent modification error for atomic request resolution.

This module defines the error raised when a compare-and-swap on a
level-change request's status loses a race: another transaction already
moved the request out of the expected state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from cocentrica.domain.exceptions import CocentricaError

if TYPE_CHECKING:
    from cocentrica.domain.models.level_change import RequestStatus


class ConcurrentModificationError(CocentricaError):
    """Raised when a status CAS fails due to concurrent modification.

    This is a recoverable error. The executor treats it as "already
    resolved": the change was applied by whichever writer won the swap.

    Attributes:
        request_id: The level-change request that was being resolved.
        expected_status: The status the CAS expected to find.
        operation: Description of the operation that failed.
    """

    def __init__(
        self,
        request_id: UUID,
        expected_status: RequestStatus,
        operation: str = "request_resolution",
    ) -> None:
        self.request_id = request_id
        self.expected_status = expected_status
        self.operation = operation
        super().__init__(
            f"Concurrent modification detected for request {request_id} "
            f"during {operation}. Expected status: {expected_status.value}. "
            "Another transaction has resolved this request."
        )
