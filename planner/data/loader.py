"""Load and validate timetable documents from JSON files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from ..logging import get_logger
from ..store import TIMETABLE_KEY, KeyValueStore
from .models import TimetableDocument

logger = get_logger(__name__)


class TimetableValidationError(Exception):
    """Raised when a timetable document fails validation.

    Carries one message per offending field; nothing from the document has
    been applied when this is raised.
    """

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


def load_timetable_document(path: Union[str, Path]) -> TimetableDocument:
    """
    Load a timetable document from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Validated TimetableDocument

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file isn't valid JSON
        TimetableValidationError: If the data fails validation
    """
    path = Path(path)

    with open(path) as f:
        data = json.load(f)

    return validate_timetable_document(data)


def validate_timetable_document(data: Any) -> TimetableDocument:
    """
    Validate a raw timetable document.

    Args:
        data: Parsed JSON document

    Returns:
        Validated TimetableDocument

    Raises:
        TimetableValidationError: With field-level messages if validation fails
    """
    if not isinstance(data, dict):
        raise TimetableValidationError(["Invalid JSON: not an object"])

    try:
        document = TimetableDocument.model_validate(data)
    except ValidationError as e:
        errors = format_validation_errors(e)
        logger.info("timetable_rejected", error_count=len(errors))
        raise TimetableValidationError(errors) from e

    return document


def format_validation_errors(error: ValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into 'field.path: message' lines."""
    messages: list[str] = []

    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        message = err["msg"].removeprefix("Value error, ")

        # Model-level validators report several fields at once as a bullet list
        bullets = [line.strip()[2:] for line in message.splitlines() if line.strip().startswith("- ")]
        if bullets:
            messages.extend(bullets)
        elif location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    return messages


# =============================================================================
# Store Round-Trip
# =============================================================================

def save_document(store: KeyValueStore, document: TimetableDocument) -> None:
    """Persist an imported document as the active timetable."""
    store.set(TIMETABLE_KEY, document.to_dict())
    logger.info(
        "timetable_imported",
        teacher=document.teacher.name,
        classes=len(document.classes),
        recurring_lessons=len(document.recurring_lessons),
    )


def load_document(store: KeyValueStore) -> Optional[TimetableDocument]:
    """Read the active timetable back from the store, or None if nothing is loaded."""
    data = store.get(TIMETABLE_KEY)
    if data is None:
        return None
    return validate_timetable_document(data)
