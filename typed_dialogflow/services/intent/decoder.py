"""Decode a raw detection result into one typed intent variant.

``decode`` is pure: no I/O, no shared state, same input → same output. The
dynamic parameter values are coerced strictly by their own JSON type; the
only lenient rules are the ones Dialogflow forces on us:

* every number arrives as a double, so ``3.0`` fills an ``int`` field;
* unfilled optional parameters arrive as ``""``, so an empty string fills a
  non-string optional field with its default.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ValidationError

from typed_dialogflow.core.errors import (
    InvalidParameters,
    MissingField,
    TypeMismatch,
    UnknownIntent,
)
from typed_dialogflow.schemas.detect_intent import RawDetectionResult

from .contracts import FieldSpec, FieldType, IntentSchema, Normalizer

_MISSING = object()


def json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "list"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def decode(raw: RawDetectionResult, schema: IntentSchema) -> BaseModel:
    """Return the variant of *schema* selected by *raw*.

    Raises ``UnknownIntent`` when nothing was matched or the matched name is
    not declared, ``MissingField`` / ``TypeMismatch`` when the parameters do
    not fit the variant, and ``InvalidParameters`` when the variant's own
    validators reject them.
    """
    variant = schema.lookup(raw.intent_name)
    if variant is None:
        raise UnknownIntent(raw.intent_name)

    # Unit variants take no parameters; whatever Dialogflow sent is ignored.
    data = _coerce_fields(variant.fields, raw.parameters, "", schema.normalize)
    try:
        return variant.model.model_validate(data)
    except ValidationError as exc:
        raise InvalidParameters(variant.tag, str(exc)) from exc


def _lookup(params: Mapping[str, Any], key: str, normalize: Normalizer) -> Any:
    if key in params:
        return params[key]
    wanted = normalize(key)
    for candidate, value in params.items():
        if normalize(candidate) == wanted:
            return value
    return _MISSING


def _coerce_fields(
    fields: tuple[FieldSpec, ...],
    params: Mapping[str, Any],
    prefix: str,
    normalize: Normalizer,
) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for spec in fields:
        path = f"{prefix}.{spec.key}" if prefix else spec.key
        value = _lookup(params, spec.key, normalize)

        if spec.type.optional and (
            value is _MISSING
            or value is None
            or (value == "" and spec.type.kind not in ("string", "any"))
        ):
            if spec.required:
                data[spec.key] = None
            continue

        if value is _MISSING:
            raise MissingField(path)

        data[spec.key] = _coerce(value, spec.type, path, normalize)
    return data


def _coerce(value: Any, ftype: FieldType, path: str, normalize: Normalizer) -> Any:
    kind = ftype.kind

    if kind == "any":
        return value

    if value is None:
        if ftype.optional:
            return None
        raise TypeMismatch(path, ftype.label, "null")

    if kind == "string":
        if isinstance(value, str):
            return value

    elif kind == "integer":
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)

    elif kind == "number":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)

    elif kind == "boolean":
        if isinstance(value, bool):
            return value

    elif kind == "enum":
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            try:
                return ftype.enum(value)
            except ValueError:
                raise TypeMismatch(path, ftype.label, f"{json_type_name(value)} {value!r}") from None

    elif kind == "list":
        if isinstance(value, list):
            return [
                _coerce(item, ftype.item, f"{path}[{i}]", normalize)
                for i, item in enumerate(value)
            ]

    elif kind == "dict":
        if isinstance(value, dict):
            return {
                k: _coerce(v, ftype.item, f"{path}.{k}", normalize)
                for k, v in value.items()
            }

    elif kind == "model":
        if isinstance(value, dict):
            return _coerce_fields(ftype.fields, value, path, normalize)

    raise TypeMismatch(path, ftype.label, json_type_name(value))
