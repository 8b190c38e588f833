from __future__ import annotations

from datetime import date
from typing import Any, Optional

from flask import jsonify, request

from ..core.exceptions import ValidationError
from ..core.results import TransitionResult
from .datetime_utils import parse_iso_date
from .serialization import to_jsonable


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def required(data: dict, key: str) -> Any:
    if data.get(key) in (None, ""):
        raise ValidationError(f"{key} is required")
    return data[key]


def date_arg(value: Optional[str]) -> Optional[date]:
    return parse_iso_date(value) if value else None


def respond(payload: Any, status: int = 200):
    return jsonify(to_jsonable(payload)), status


def respond_transition(result: TransitionResult):
    return jsonify({"applied": result.applied, "reason": result.reason}), 200
