"""
Record Store: infrastructure adapter for exported learner records.

Implements ItemStateRepository and ResponseHistoryRepository over a YAML
(or JSON, which YAML accepts) document laid out as:

    learners:
      <learner_id>:
        items:
          - id: card-1
            estimated_minutes: 1.5
            difficulty: 0.4
            state: {ease_factor: 2.5, interval: 6, repetitions: 2, ...}
        responses:
          - {correct: true, question_difficulty: 0.3, timestamp: ..., subject: math}
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
import yaml.constructor

from mnemos.domain.ability.models import ResponseRecord
from mnemos.domain.errors import RecordFormatError
from mnemos.domain.ports import ItemStateRepository, ResponseHistoryRepository
from mnemos.domain.scheduling.models import ItemState, SessionItem

from .schemas import ItemStateSchema, ResponseSchema, SessionItemSchema, validate_record
from .serialization import state_to_dict

logger = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """Custom YAML loader that forbids duplicate keys."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    None, None, f"found duplicate key '{key}'", key_node.start_mark
                )
            seen.add(key)
        return super().construct_mapping(node, deep)


def load_document(path: Path) -> dict[str, Any]:
    """
    Parse a YAML/JSON file into a mapping. A missing or empty file is an empty mapping.
    """
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    try:
        data = yaml.load(text, Loader=UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise RecordFormatError(f"{path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RecordFormatError(f"{path}: top level must be a mapping")
    return data


def dump_document(path: Path, data: dict[str, Any]) -> None:
    """Write a mapping as JSON for .json files, YAML otherwise."""
    if path.suffix.lower() == ".json":
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    else:
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")


def load_state(path: Path) -> ItemState | None:
    """Load a single item state document; None when the item is new."""
    data = load_document(path)
    if not data:
        return None
    return validate_record(ItemStateSchema, data, str(path)).to_domain()


def save_state(path: Path, state: ItemState) -> None:
    dump_document(path, state_to_dict(state))


class RecordStore(ItemStateRepository, ResponseHistoryRepository):
    """
    Reads learner records from one exported document.

    The document is parsed once, on first access.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._learners: dict[str, Any] | None = None

    async def get_items(self, learner_id: str) -> list[SessionItem]:
        records = self._learner(learner_id).get("items") or []
        source = f"{self.path} ({learner_id} items)"
        return [validate_record(SessionItemSchema, r, source).to_domain() for r in records]

    async def get_responses(
        self, learner_id: str, subject_id: str | None = None
    ) -> list[ResponseRecord]:
        records = self._learner(learner_id).get("responses") or []
        source = f"{self.path} ({learner_id} responses)"
        responses = [validate_record(ResponseSchema, r, source).to_domain() for r in records]
        if subject_id is not None:
            responses = [r for r in responses if r.subject_id == subject_id]
        return responses

    def learner_ids(self) -> list[str]:
        """IDs of every learner in the document, in file order."""
        return list(self._load())

    def _load(self) -> dict[str, Any]:
        if self._learners is None:
            learners = load_document(self.path).get("learners") or {}
            if not isinstance(learners, dict):
                raise RecordFormatError(f"{self.path}: 'learners' must be a mapping")
            self._learners = {str(k): v or {} for k, v in learners.items()}
            logger.debug(f"Loaded {len(self._learners)} learners from {self.path}")
        return self._learners

    def _learner(self, learner_id: str) -> dict[str, Any]:
        learners = self._load()
        if learner_id not in learners:
            logger.warning(f"No records for learner {learner_id!r} in {self.path}")
            return {}
        return learners[learner_id]
