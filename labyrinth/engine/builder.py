"""Event Builder: normalizes captured input into a canonical FailureEvent."""

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from labyrinth.errors import LossLogValidationError
from labyrinth.schemas import FailureEvent, PendingEvent, Provenance, utc_now

logger = logging.getLogger(__name__)

UNKNOWN_TASK = "Unknown Task"


def generate_loss_id(now: Optional[datetime] = None) -> str:
    """Identifier of the form ``loss_<YYYYMMDD>_<HHMM>``.

    Date and time are read from ``now`` as given, in its own timezone. The
    engine clock defaults to UTC, so ids carry UTC wall time unless the host
    injects a local-time clock.
    """
    if now is None:
        now = utc_now()
    return f"loss_{now.strftime('%Y%m%d')}_{now.strftime('%H%M')}"


def _first_error(error: ValidationError) -> str:
    err = error.errors()[0]
    location = ".".join(str(part) for part in err.get("loc", ()))
    return f"{location}: {err.get('msg', 'invalid value')}" if location else err.get("msg", "invalid value")


def prepare_event(partial: Mapping[str, Any], now: Optional[datetime] = None) -> FailureEvent:
    """Fill identifier, timestamp and defaults for a partially specified event.

    Pure function: no I/O. Caller-supplied ``id`` and ``timestamp`` are
    ignored; both are stamped from ``now``.

    Raises:
        LossLogValidationError: A field could not be coerced to its type
    """
    if now is None:
        now = utc_now()

    provenance = partial.get("provenance") or {}
    if isinstance(provenance, Provenance):
        provenance = provenance.model_dump()

    data = {k: v for k, v in partial.items() if v is not None}
    data.update(
        id=generate_loss_id(now),
        timestamp=now,
        source_task=(partial.get("source_task") or UNKNOWN_TASK),
        provenance=provenance,
    )
    try:
        return FailureEvent.model_validate(data)
    except ValidationError as e:
        raise LossLogValidationError(f"Invalid loss log: {_first_error(e)}") from e


def validate_completed(event: FailureEvent, vocabulary: Optional[Iterable[str]] = None) -> None:
    """Check the fields a completed (non-deferred) submission requires.

    Archetypes outside ``vocabulary`` are accepted but logged, since the
    vocabulary is user-configurable and may lag behind older records.

    Raises:
        LossLogValidationError: With a user-facing message
    """
    if not event.source_task.strip() or event.source_task == UNKNOWN_TASK:
        raise LossLogValidationError("Please enter the Source Task.", field_name="source_task")
    if not event.archetypes:
        raise LossLogValidationError(
            "Please select at least one Failure Archetype.", field_name="archetypes"
        )
    if not event.thread:
        raise LossLogValidationError("Please define an Ariadne's Thread.", field_name="principle")

    if vocabulary is not None:
        known = set(vocabulary)
        unknown = [a for a in event.archetypes if a not in known]
        if unknown:
            logger.warning(f"Archetypes outside configured vocabulary: {', '.join(unknown)}")


def build_pending(partial: Mapping[str, Any]) -> PendingEvent:
    """Validate and build a deferred event; only ``source_task`` is required.

    Raises:
        LossLogValidationError: Missing source task or uncoercible hints
    """
    source_task = (partial.get("source_task") or "").strip()
    if not source_task:
        raise LossLogValidationError("Please enter the Source Task.", field_name="source_task")
    data = {k: v for k, v in partial.items() if v is not None}
    data["source_task"] = source_task
    try:
        return PendingEvent.model_validate(data)
    except ValidationError as e:
        raise LossLogValidationError(f"Invalid deferred log: {_first_error(e)}") from e
