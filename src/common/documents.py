# ABOUTME: Pydantic schemas for the JSON documents estimators persist per learner.
# ABOUTME: Carries an explicit schema version so older or foreign payloads fall back to defaults.

from __future__ import annotations

from typing import List, Literal, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .schemas import DEFAULT_DIFFICULTY, DEFAULT_REACTION_MS

SCHEMA_VERSION = 1

DocumentT = TypeVar("DocumentT", bound="StateDocument")


class StateDecodeError(ValueError):
    """Raised when a stored payload cannot be turned back into estimator state."""


class StateDocument(BaseModel):
    """Fields shared by every estimator variant."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False)

    # Required on input; unversioned payloads are rejected.
    schema_version: int
    variant: str
    category_errors: List[Tuple[str, float]] = Field(default_factory=list)
    average_reaction_time: float = DEFAULT_REACTION_MS
    current_difficulty: float = float(DEFAULT_DIFFICULTY)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class RuleBasedDocument(StateDocument):
    variant: str = "rule-based"
    recent_correct: List[Literal[0, 1]] = Field(default_factory=list)


def decode_document(model_cls: Type[DocumentT], payload: str, variant: str) -> DocumentT:
    """Validate a JSON payload, rejecting version or variant mismatches."""

    try:
        document = model_cls.model_validate_json(payload)
    except ValidationError as exc:
        raise StateDecodeError(f"{variant} state failed validation ({exc.error_count()} errors)") from exc
    if document.schema_version != SCHEMA_VERSION:
        raise StateDecodeError(
            f"{variant} state has schema version {document.schema_version}, expected {SCHEMA_VERSION}"
        )
    if document.variant != variant:
        raise StateDecodeError(f"stored state belongs to '{document.variant}', not '{variant}'")
    return document
