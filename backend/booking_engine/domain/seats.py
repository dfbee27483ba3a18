"""
Seat label value types.

Seat lists arrive from clients as comma-separated text ("A1, A2,A3") or as
JSON arrays. They are parsed here, once, into an ordered set; the rest of the
engine never splits strings.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Union

RawSeats = Union[str, Iterable[str], None]

# Width of booking_seats.seat_label
MAX_SEAT_LABEL_LENGTH = 20


@dataclass(frozen=True)
class SeatSelection:
    """Ordered set of non-empty, unique seat labels."""

    labels: tuple[str, ...] = ()

    @classmethod
    def parse(cls, raw: RawSeats) -> "SeatSelection":
        """Trim, drop blanks and de-duplicate, keeping first-seen order."""
        if raw is None:
            return cls()
        if isinstance(raw, str):
            raw = raw.split(",")

        seen: dict[str, None] = {}
        for item in raw:
            label = str(item).strip()
            if label and label not in seen:
                seen[label] = None
        return cls(tuple(seen))

    def partition(self, occupied: set[str]) -> tuple["SeatSelection", "SeatSelection"]:
        """Split into (free, taken) against an occupancy snapshot."""
        free = tuple(label for label in self.labels if label not in occupied)
        taken = tuple(label for label in self.labels if label in occupied)
        return SeatSelection(free), SeatSelection(taken)

    def as_list(self) -> list[str]:
        return list(self.labels)

    def __iter__(self) -> Iterator[str]:
        return iter(self.labels)

    def __len__(self) -> int:
        return len(self.labels)

    def __bool__(self) -> bool:
        return bool(self.labels)

    def __contains__(self, label: object) -> bool:
        return label in self.labels

    def __str__(self) -> str:
        return ", ".join(self.labels)
