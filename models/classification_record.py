from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from utils.timestamps import parse_timestamp, to_iso

LOGGER = logging.getLogger(__name__)

HEALTHY = "Healthy"
UNHEALTHY = "Unhealthy"
CLASSIFICATION_LABELS = (HEALTHY, UNHEALTHY)


def normalize_label(value: Any) -> str:
    """Map a stored label onto `HEALTHY` or `UNHEALTHY`, ignoring case and padding.

    Raises:
        ValueError: If the label is neither.
    """
    text = str(value or "").strip().lower()
    for label in CLASSIFICATION_LABELS:
        if text == label.lower():
            return label
    raise ValueError(
        f"Unsupported classification {value!r}. "
        f"Expected one of: {', '.join(CLASSIFICATION_LABELS)}"
    )


@dataclass
class ClassificationRecord:
    """In-memory representation of a row in the plant_classifications table.

    Attributes:
        id: Opaque primary key assigned by the record store.
        classification: Health label, either "Healthy" or "Unhealthy".
        created_at: Timezone-aware instant the scan was stored.
        image_url: URL of the scanned plant image.
        location: Free-text location. May hold a raw
            "Latitude: X, Longitude: Y" pair until it is geocoded.
        confidence: Optional model score (numeric or string, passed through).
    """

    id: str
    classification: str
    created_at: datetime
    image_url: str = ""
    location: str = ""
    confidence: Optional[Union[float, str]] = None

    def __post_init__(self) -> None:
        self.classification = normalize_label(self.classification)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ClassificationRecord":
        """Build a record from a store row keyed by column name."""
        return cls(
            id=str(row["id"]),
            classification=row["classification"],
            created_at=parse_timestamp(row["created_at"]),
            image_url=row.get("image_url") or "",
            location=row.get("location") or "",
            confidence=row.get("confidence"),
        )

    def with_location(self, location: str) -> "ClassificationRecord":
        """Return a copy carrying a different location text."""
        return replace(self, location=location)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "classification": self.classification,
            "created_at": to_iso(self.created_at),
            "image_url": self.image_url,
            "location": self.location,
            "confidence": self.confidence,
        }


def records_from_rows(rows: Iterable[Mapping[str, Any]]) -> List[ClassificationRecord]:
    """Convert store rows one by one; a row that does not parse is logged and skipped."""
    records: List[ClassificationRecord] = []
    for row in rows:
        try:
            records.append(ClassificationRecord.from_row(row))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            LOGGER.warning("Skipping classification row %r: %s", row.get("id"), exc)
    return records


def labels_from_values(values: Iterable[Any]) -> List[str]:
    """Normalize bare label values, skipping the ones that are not a known label."""
    labels: List[str] = []
    for value in values:
        try:
            labels.append(normalize_label(value))
        except ValueError as exc:
            LOGGER.warning("Skipping classification label: %s", exc)
    return labels
