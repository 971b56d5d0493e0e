"""
Ports (interfaces) for the records the core consumes.

The storage layer owns persistence and implements these contracts;
application services depend on these abstractions, never on a database.
"""

from abc import ABC, abstractmethod

from .ability.models import ResponseRecord
from .scheduling.models import SessionItem


class ItemStateRepository(ABC):
    """
    Port for reading a learner's item states.

    Implementations:
        - RecordStore: Loads YAML/JSON documents exported by the storage layer.
    """

    @abstractmethod
    async def get_items(self, learner_id: str) -> list[SessionItem]:
        """
        Fetch every item of a learner, reviewed or not.

        Args:
            learner_id: The learner whose items are requested.

        Returns:
            SessionItem objects; `state` is None for items never reviewed.
        """
        pass


class ResponseHistoryRepository(ABC):
    """Port for reading a learner's answered questions."""

    @abstractmethod
    async def get_responses(
        self, learner_id: str, subject_id: str | None = None
    ) -> list[ResponseRecord]:
        """
        Fetch a learner's response history.

        Args:
            learner_id: The learner whose history is requested.
            subject_id: Restrict to one subject when given.

        Returns:
            ResponseRecord objects in any order; the estimator windows and sorts them.
        """
        pass
