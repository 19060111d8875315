"""Commit plan: a stack of compensating actions for one commit.

Each successful store write pushes the resource it created together with the
action that undoes it. On failure the stack is unwound newest-first, so a
failure at step k only ever undoes steps 1..k-1.
"""

import logging
from typing import Callable

from sonicshare.errors import CompensationWarning
from sonicshare.models import CommittedResource

logger = logging.getLogger(__name__)

Compensation = Callable[[], None]


class CommitPlan:
    """Ordered record of committed resources and how to undo them."""

    def __init__(self) -> None:
        self._steps: list[tuple[CommittedResource, Compensation]] = []

    def __len__(self) -> int:
        return len(self._steps)

    @property
    def resources(self) -> list[CommittedResource]:
        """Committed resources in creation order."""
        return [resource for resource, _ in self._steps]

    def record(self, resource: CommittedResource, compensate: Compensation) -> None:
        """Push a resource after its write succeeded."""
        self._steps.append((resource, compensate))

    def rollback(self) -> list[CompensationWarning]:
        """Undo every recorded resource in reverse order.

        Each compensation runs independently: a failure is logged and
        returned as a warning, and the remaining compensations still run.
        The plan is empty afterwards.

        Returns:
            Warnings for compensations that failed, in the order they ran.
        """
        warnings: list[CompensationWarning] = []
        while self._steps:
            resource, compensate = self._steps.pop()
            try:
                compensate()
                logger.info(f"Rolled back {resource.kind.value} blob '{resource.key}'")
            except Exception as e:
                warning = CompensationWarning(resource, e)
                logger.warning(f"{warning}; blob may be orphaned")
                warnings.append(warning)
        return warnings

    def discard(self) -> None:
        """Forget all resources once the commit has succeeded."""
        self._steps.clear()
