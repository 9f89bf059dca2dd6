"""
Helpers shared by the per-backend converters.
"""
from typing import Any, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError as SchemaValidationError

from gitxab.core.exceptions import ConversionError
from gitxab.core.models import IssueState, PullRequestState

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_STATE_TABLE = {
    "opened": PullRequestState.OPEN,
    "open": PullRequestState.OPEN,
    "closed": PullRequestState.CLOSED,
    "merged": PullRequestState.MERGED,
}


def normalize_state(raw: Any) -> PullRequestState:
    """
    Map a backend state string onto the unified vocabulary.

    "opened" and "open" become open, "closed" and "merged" map to
    themselves, and anything else (including None) is open.
    """
    if not isinstance(raw, str):
        return PullRequestState.OPEN
    return _STATE_TABLE.get(raw.strip().lower(), PullRequestState.OPEN)


def normalize_issue_state(raw: Any) -> IssueState:
    """Like normalize_state, but issues cannot be merged."""
    state = normalize_state(raw)
    if state == PullRequestState.OPEN:
        return IssueState.OPEN
    return IssueState.CLOSED


def decode(
    schema: Type[SchemaT],
    raw: Union[SchemaT, Any],
    backend: str,
    entity_type: str
) -> SchemaT:
    """
    Validate a raw payload against its schema.

    Raises:
        ConversionError: If a required field is missing or malformed
    """
    if isinstance(raw, schema):
        return raw
    try:
        return schema.model_validate(raw)
    except SchemaValidationError as e:
        raise ConversionError(backend, entity_type, e) from e


def count_diff_lines(diff: str) -> tuple:
    """
    Count added and removed lines in unified diff text.

    File headers ("+++", "---") are not counted.

    Returns:
        Tuple of (additions, deletions)
    """
    additions = 0
    deletions = 0
    for line in (diff or "").splitlines():
        if line.startswith("+++") or line.startswith("---"):
            continue
        if line.startswith("+"):
            additions += 1
        elif line.startswith("-"):
            deletions += 1
    return additions, deletions
