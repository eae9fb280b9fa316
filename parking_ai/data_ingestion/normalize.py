from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Iterable

from ..history.models import TransactionRecord, to_local_naive
from ..recommendations.models import Coordinates, ParkingSpaceSnapshot, SpaceStatus

_OCCUPIED_STATUSES = {"occupied", "booked", "reserved"}


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def _first_present(doc: dict[str, Any], keys: Iterable[str]) -> Any | None:
    for key in keys:
        value = doc.get(key)
        if not _is_missing(value):
            return value
    return None


def _to_float(value: object) -> float | None:
    if _is_missing(value) or isinstance(value, bool):
        return None
    try:
        result = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def _to_count(value: object) -> int:
    number = _to_float(value)
    if number is None:
        return 0
    return max(0, int(number))


def _to_status(value: object) -> SpaceStatus:
    raw = str(value).strip().lower() if not _is_missing(value) else "available"
    if raw == SpaceStatus.available.value:
        return SpaceStatus.available
    if raw == SpaceStatus.full.value:
        return SpaceStatus.full
    if raw in _OCCUPIED_STATUSES:
        return SpaceStatus.occupied
    return SpaceStatus.other


def _to_coordinates(doc: dict[str, Any]) -> Coordinates:
    nested = doc.get("coordinates")
    if isinstance(nested, dict):
        lat = _to_float(_first_present(nested, ["lat", "latitude"]))
        lng = _to_float(_first_present(nested, ["lng", "lon", "longitude"]))
    else:
        lat = _to_float(_first_present(doc, ["lat", "latitude"]))
        lng = _to_float(_first_present(doc, ["lng", "lon", "longitude"]))
    return Coordinates(lat=lat or 0.0, lng=lng or 0.0)


def _to_datetime(value: object) -> datetime | None:
    """Parse datetimes, ISO strings, epoch seconds and ``{seconds, nanoseconds}``
    document timestamps into local naive datetimes."""
    if _is_missing(value):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, dict) and "seconds" in value:
        seconds = _to_float(value.get("seconds"))
        if seconds is None:
            return None
        nanos = _to_float(value.get("nanoseconds")) or 0.0
        return datetime.fromtimestamp(seconds + nanos / 1e9)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(float(value))
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    return to_local_naive(parsed)


def normalize_space(doc: dict[str, Any]) -> ParkingSpaceSnapshot | None:
    """
    Map a parking space document onto the canonical snapshot.

    Accepts both the current field names (``availableSpots``, ``totalSpots``,
    ``totalReviews``) and the legacy ones (``available``, ``total``,
    ``reviews``), nested ``coordinates`` or flat ``lat``/``lng``.
    Returns ``None`` for documents without an id.
    """
    space_id = _first_present(doc, ["id", "spaceId", "space_id"])
    if space_id is None:
        return None

    available = _to_count(_first_present(doc, ["availableSpots", "available_spots", "available"]))
    total = _to_count(_first_present(doc, ["totalSpots", "total_spots", "total"]))

    rating = _to_float(doc.get("rating")) or 0.0
    name = _first_present(doc, ["name", "title"])
    address = _first_present(doc, ["address", "location"])

    return ParkingSpaceSnapshot(
        id=str(space_id),
        name=str(name) if name is not None else None,
        address=str(address) if isinstance(address, str) else None,
        coordinates=_to_coordinates(doc),
        price=max(0.0, _to_float(_first_present(doc, ["price", "pricePerHour", "price_per_hour"])) or 0.0),
        total_spots=max(total, available),
        available_spots=available,
        status=_to_status(doc.get("status")),
        rating=max(0.0, min(5.0, rating)),
        review_count=_to_count(
            _first_present(doc, ["totalReviews", "reviewCount", "review_count", "reviews"])
        ),
        distance=_to_float(doc.get("distance")),
    )


def normalize_spaces(docs: Iterable[dict[str, Any]]) -> list[ParkingSpaceSnapshot]:
    spaces: list[ParkingSpaceSnapshot] = []
    for doc in docs:
        space = normalize_space(doc)
        if space is not None:
            spaces.append(space)
    return spaces


def normalize_transaction(doc: dict[str, Any]) -> TransactionRecord | None:
    space_id = _first_present(doc, ["parkingSpaceId", "parking_space_id", "spaceId"])
    if space_id is None:
        return None

    user_id = _first_present(doc, ["userId", "user_id"])
    status = _first_present(doc, ["status"])

    return TransactionRecord(
        parking_space_id=str(space_id),
        user_id=str(user_id) if user_id is not None else None,
        status=str(status).strip().lower() if status is not None else "",
        total_price=_to_float(_first_present(doc, ["totalPrice", "total_price", "amount"])),
        start_time=_to_datetime(_first_present(doc, ["startTime", "start_time"])),
        created_at=_to_datetime(_first_present(doc, ["createdAt", "created_at"])),
    )


def normalize_transactions(docs: Iterable[dict[str, Any]]) -> list[TransactionRecord]:
    records: list[TransactionRecord] = []
    for doc in docs:
        record = normalize_transaction(doc)
        if record is not None:
            records.append(record)
    return records
