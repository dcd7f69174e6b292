"""Cumulative per-file size tracking across timeline steps."""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Union

from pydantic import ValidationError

from repo_evolution.errors import InputValidationError
from repo_evolution.models.change import ChangeRecord, ChangeStatus

logger = logging.getLogger(__name__)

RecordLike = Union[ChangeRecord, Mapping[str, Any]]


def validate_records(records: Iterable[RecordLike]) -> List[ChangeRecord]:
    """Validate a batch of records, raising on the first malformed one."""
    validated = []
    for index, record in enumerate(records):
        if isinstance(record, ChangeRecord):
            validated.append(record)
            continue
        try:
            validated.append(ChangeRecord.model_validate(record))
        except ValidationError as e:
            raise InputValidationError(
                f"Invalid change record at index {index}: {e}", index=index
            ) from e
    return validated


class FileStateTracker:
    """Maintains path -> size and applies one batch of change records at a time.

    Sizes are line counts accumulated from additions minus deletions since a
    path first appeared. Sizes can drop to zero or below; such paths are kept
    in the raw state but treated as deleted by get_effective_files().
    """

    def __init__(self):
        self._sizes: Dict[str, int] = {}
        self._last_renames: Dict[str, str] = {}

    def apply_batch(self, records: Iterable[RecordLike]) -> None:
        """Apply a batch of records in order.

        The whole batch is validated before anything is applied, so an
        InputValidationError leaves the tracker untouched.
        """
        batch = validate_records(records)
        self._last_renames = {}

        for record in batch:
            self._apply(record)

        logger.debug(
            "Applied %d records, tracking %d paths", len(batch), len(self._sizes)
        )

    def _apply(self, record: ChangeRecord) -> None:
        if record.status == ChangeStatus.REMOVED:
            self._sizes.pop(record.path, None)
            self._last_renames.pop(record.path, None)
        elif record.status == ChangeStatus.MODIFIED:
            self._sizes[record.path] = self._sizes.get(record.path, 0) + record.delta
        elif (
            record.status == ChangeStatus.RENAMED
            and record.previous_path is not None
            and record.previous_path in self._sizes
        ):
            old_size = self._sizes.pop(record.previous_path)
            self._sizes[record.path] = old_size + record.delta
            # A chain a -> b -> c within one batch is reported as a -> c
            origin = self._last_renames.pop(record.previous_path, record.previous_path)
            if origin != record.path:
                self._last_renames[record.path] = origin
        else:
            # Added, or a rename whose source we never saw
            self._sizes[record.path] = record.delta

    def current_state(self) -> Dict[str, int]:
        """Get a copy of the raw path -> size mapping."""
        return dict(self._sizes)

    def get_effective_files(self) -> List[Dict[str, Any]]:
        """Get files that logically exist, i.e. with a positive size."""
        return [
            {"path": path, "size": size}
            for path, size in self._sizes.items()
            if size > 0
        ]

    def last_renames(self) -> Dict[str, str]:
        """Explicit renames (new path -> old path) from the last batch."""
        return dict(self._last_renames)

    def clear(self) -> None:
        """Forget all tracked files."""
        self._sizes.clear()
        self._last_renames.clear()

    def __len__(self) -> int:
        return len(self._sizes)

    def __contains__(self, path: object) -> bool:
        return path in self._sizes
