"""
Stock Model Validators

Ready-made validation hooks for the loader. Validators may run on the
loader's background thread, so they must not share mutable state.
"""

import json
from typing import Any, Callable, Dict, Optional

from assist_ranker.loader.errors import ModelValidationError
from assist_ranker.loader.state import ModelStatus


def accept_bytes(payload: bytes) -> bytes:
    """Accept any non-empty payload as the model."""
    if not payload:
        raise ModelValidationError("Empty model payload", status=ModelStatus.PARSE_ERROR)
    return payload


def json_model_validator(
    required_version: Optional[int] = None,
    version_key: str = "version",
) -> Callable[[bytes], Dict[str, Any]]:
    """Build a validator for JSON ranker models.

    The payload must decode to a JSON object. When `required_version` is
    given, the object's `version_key` must equal it.

    Args:
        required_version: Model version the client understands
        version_key: Key holding the model version

    Returns:
        Validator returning the decoded object
    """

    def validate(payload: bytes) -> Dict[str, Any]:
        try:
            model = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ModelValidationError(f"Model is not valid JSON: {e}", status=ModelStatus.PARSE_ERROR)

        if not isinstance(model, dict):
            raise ModelValidationError("Model must be a JSON object", status=ModelStatus.PARSE_ERROR)

        if required_version is not None and model.get(version_key) != required_version:
            raise ModelValidationError(
                f"Model version {model.get(version_key)!r} != {required_version}",
                status=ModelStatus.INCOMPATIBLE,
            )

        return model

    return validate
