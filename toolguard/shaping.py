"""Response shaping helpers for handler implementations.

``trim_response`` strips API bookkeeping noise from JSON before it is returned
to a tool caller. ``parse_response`` validates raw JSON against a pydantic
model and raises ``UnexpectedShapeError`` instead of letting missing fields
turn into silent ``None`` values.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from toolguard.exceptions import UnexpectedShapeError

ModelT = TypeVar("ModelT", bound=BaseModel)

# Paging and caching metadata that tool callers never need
DEFAULT_STRIP_KEYS = frozenset({
    "etag",
    "kind",
    "pageInfo",
    "nextPageToken",
    "prevPageToken",
    "localized",
    "regionRestriction",
    "contentRating",
    "recordingDetails",
    "fileDetails",
    "processingDetails",
    "suggestions",
})

DEFAULT_THUMBNAIL_SIZES = ("medium",)


def trim_response(
    data: Any,
    strip_keys: Iterable[str] = DEFAULT_STRIP_KEYS,
    keep_thumbnails: Iterable[str] = DEFAULT_THUMBNAIL_SIZES,
) -> Any:
    """Return a cleaned copy of ``data``; the input is not modified."""
    strip = frozenset(strip_keys)
    keep = tuple(keep_thumbnails)
    return _trim(data, strip, keep)


def _trim(data: Any, strip: frozenset[str], keep: tuple[str, ...]) -> Any:
    if isinstance(data, list):
        return [_trim(item, strip, keep) for item in data]
    if not isinstance(data, Mapping):
        return data

    result: dict[str, Any] = {}
    for key, value in data.items():
        if key in strip:
            continue
        if key == "thumbnails" and isinstance(value, Mapping):
            kept = {size: value[size] for size in keep if value.get(size)}
            if kept:
                result[key] = kept
            continue
        result[key] = _trim(value, strip, keep)
    return result


def parse_response(model: type[ModelT], data: Any) -> ModelT:
    """Validate ``data`` against ``model``."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors()
        ]
        raise UnexpectedShapeError(model.__name__, errors) from exc
