"""The closed set of sign categories the classifier distinguishes."""

from __future__ import annotations

from enum import Enum


class SignClassification(str, Enum):
    """Sign categories in one-hot index order.

    The declaration order is the class index used for one-hot encoding and
    for naming evaluation labels.  Append new members at the end only;
    reordering invalidates every assembled dataset and trained model.
    """

    STOP = "STOP"
    YIELD = "YIELD"
    PRIORITY_ROAD = "PRIORITY_ROAD"
    NO_ENTRY = "NO_ENTRY"
    SPEED_LIMIT = "SPEED_LIMIT"
    NO_PARKING = "NO_PARKING"
    PEDESTRIAN_CROSSING = "PEDESTRIAN_CROSSING"
    ROUNDABOUT = "ROUNDABOUT"

    @property
    def ordinal(self) -> int:
        """Zero-based position of this category in declaration order."""
        return list(type(self)).index(self)

    @classmethod
    def names(cls) -> list[str]:
        return [member.name for member in cls]
