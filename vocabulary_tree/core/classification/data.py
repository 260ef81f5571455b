"""
Data models used by the classification browse APIs
"""
from __future__ import annotations

from typing import Optional, Union

from attrs import define, field, frozen
from django.db.models import QuerySet
from typing_extensions import TypeAlias

from .models import Classification

# Most APIs accept either a classification or its primary key
ClassificationOrId: TypeAlias = Union[Classification, int]


@frozen
class BrowseBin:
    """
    One alphabetical slice of a sorted list of normalized sibling names,
    with the short labels that tell it apart from its neighbours.
    """

    begin_label: str
    end_label: str
    names: tuple = field(converter=tuple)

    @property
    def first_name(self) -> str:
        return self.names[0]

    @property
    def last_name(self) -> str:
        return self.names[-1]

    @property
    def label(self) -> str:
        """
        Text for the link to this bin, e.g. "B" or "Ca-Cz".
        """
        if self.begin_label == self.end_label:
            return self.begin_label
        return f"{self.begin_label}-{self.end_label}"


@define(eq=False)
class BrowsePage:
    """
    Everything a "Browse by Category" page needs for one level of a
    vocabulary.

    ``bins`` is empty when all the classifications fit on one page.
    ``start_label``/``end_label`` are the range actually used to select
    ``classifications`` (possibly defaulted to the first bin).
    """

    field_id: int
    parent_id: Optional[int]
    bins: list[BrowseBin]
    start_label: Optional[str]
    end_label: Optional[str]
    classifications: QuerySet

    @property
    def is_partitioned(self) -> bool:
        return bool(self.bins)
