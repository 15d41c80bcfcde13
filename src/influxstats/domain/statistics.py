"""
Statistics Engine
=================

Descriptive statistics (min, max, mean, median) over DataSet fields.

Values are sorted on a private copy, so a DataSet keeps its
timestamp/value alignment after build_stats().

Naming:
    A field of an untagged DataSet is reported under its field name.
    A field of a tagged DataSet (GROUP BY tag queries) is reported under the
    underscore-join of the tag values, ordered by tag key.
"""

from dataclasses import dataclass
from operator import attrgetter
from typing import Dict, Iterable, List, Tuple, Union

import numpy as np
import pandas as pd

from influxstats.core.exceptions import EmptySeriesError
from influxstats.domain.datasets import DataSet

SORTABLE_FIELDS = ("name", "min", "max", "mean", "median")


@dataclass(frozen=True)
class FieldName:
    """Stat key of an untagged series."""
    field: str

    def render(self) -> str:
        return self.field


@dataclass(frozen=True)
class TaggedName:
    """Stat key of a series produced by a tag-grouped query."""
    field: str
    tags: Tuple[Tuple[str, str], ...]

    def render(self) -> str:
        return "_".join(value for _, value in self.tags)


StatName = Union[FieldName, TaggedName]


def stat_name_for(field: str, tags: Dict[str, str]) -> StatName:
    if tags:
        return TaggedName(field=field, tags=tuple(sorted(tags.items())))
    return FieldName(field=field)


@dataclass(frozen=True)
class DataStat:
    """Summary of one field of one DataSet."""

    key: StatName
    min: float
    max: float
    mean: float
    median: float
    length: int

    @property
    def name(self) -> str:
        return self.key.render()

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "median": self.median,
            "length": self.length,
        }


class DataStats(List[DataStat]):
    """Flat list of DataStat with "largest first" ranking helpers."""

    def field_sort(self, field: str) -> "DataStats":
        """
        Stable sort, descending, by one of name/min/max/mean/median.

        Unknown field names sort by mean.
        """
        attr = field if field in SORTABLE_FIELDS else "mean"
        # reverse=True keeps equal elements in their original order
        self.sort(key=attrgetter(attr), reverse=True)
        return self

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [stat.to_dict() for stat in self],
            columns=["name", "min", "max", "mean", "median", "length"],
        )


def describe(values: Iterable[float], key: StatName, dataset: str = "") -> DataStat:
    """
    Compute a DataStat from one value sequence.

    Raises:
        EmptySeriesError: If the sequence is empty
    """
    ordered = np.sort(np.asarray(list(values), dtype=float))
    length = len(ordered)
    if length == 0:
        raise EmptySeriesError(dataset, key.field)

    middle = length // 2
    if length % 2 == 0:
        median = (ordered[middle - 1] + ordered[middle]) / 2
    else:
        median = ordered[middle]

    return DataStat(
        key=key,
        min=float(ordered[0]),
        max=float(ordered[-1]),
        mean=float(ordered.sum() / length),
        median=float(median),
        length=length,
    )


class StatisticsEngine:
    """Turns DataSets into a flat DataStats list."""

    def build_stats(self, datasets: Iterable[DataSet]) -> DataStats:
        stats = DataStats()
        for dataset in datasets:
            for field, values in dataset.series.items():
                key = stat_name_for(field, dataset.tags)
                stats.append(describe(values, key, dataset=dataset.name))
        return stats
