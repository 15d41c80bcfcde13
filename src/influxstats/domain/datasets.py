"""
Query Result Value Objects
==========================

DataSet holds one series block of numeric samples, TextSet holds the flattened
values of a metadata query (SHOW MEASUREMENTS and friends).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Sequence

import pandas as pd

from influxstats.core.exceptions import ValidationError

# Substituted for timestamps that cannot be parsed
ZERO_INSTANT = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class DataSet:
    """
    Numeric samples of one series block.

    Index i of timestamps and of every sequence in series refers to the same
    sample. Sequences are stored as tuples so the alignment cannot drift.
    """

    name: str
    timestamps: Sequence[datetime]
    series: Dict[str, Sequence[float]]
    tags: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "timestamps", tuple(self.timestamps))
        object.__setattr__(
            self, "series", {name: tuple(values) for name, values in self.series.items()}
        )
        object.__setattr__(self, "tags", dict(self.tags or {}))

        length = len(self.timestamps)
        for field_name, values in self.series.items():
            if len(values) != length:
                raise ValidationError(
                    field_name,
                    len(values),
                    f"series has {len(values)} values but dataset has {length} timestamps"
                )

    @property
    def fields(self) -> List[str]:
        return list(self.series)

    def __len__(self) -> int:
        return len(self.timestamps)

    def to_dataframe(self) -> pd.DataFrame:
        """One column per field, indexed by timestamp."""
        frame = pd.DataFrame(
            {name: list(values) for name, values in self.series.items()},
            index=pd.DatetimeIndex(
                pd.to_datetime(list(self.timestamps), utc=True, errors="coerce"), name="time"
            ),
        )
        return frame


@dataclass
class TextSet:
    """Flattened string values of a metadata query."""

    name: str
    tags: Dict[str, str] = field(default_factory=dict)
    values: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)

    def __contains__(self, item: object) -> bool:
        return item in self.values

