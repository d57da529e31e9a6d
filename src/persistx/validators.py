"""Payload checks against application-defined pydantic models.

Useful inside hooks that need a stricter contract than the field rules of a
definition, for example cross-field constraints.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from persistx import logger
from persistx.typing.models import ModelValidationResult

if TYPE_CHECKING:
    from pydantic import BaseModel


def validate_with_model(model: type[BaseModel], payload: Any) -> ModelValidationResult:
    """Validate a payload with a pydantic model without raising.

    Args:
        model (type[BaseModel]): Model describing the expected payload.
        payload (Any): Raw payload.

    Returns:
        ModelValidationResult: The model instance when valid, the pydantic
            error entries otherwise.
    """
    try:
        data = model.model_validate(payload)
    except ValidationError as exc:
        issues = exc.errors(include_url=False, include_context=False)
        logger.debug("Model validation failed", extra={"model": model.__name__, "issues": len(issues)})
        return ModelValidationResult(ok=False, issues=issues)
    return ModelValidationResult(ok=True, data=data)
