"""Base class for labeled enumerations with raw codes and display labels.

Trip files carry compact codes ("member", weekday numbers, month numbers)
while cleaned tables carry readable labels ("Member", "Monday", "Jan").
LabeledEnum keeps both on each member and knows how to turn the labels into
an ordered polars Enum dtype.
"""

from enum import Enum, EnumType
from typing import Annotated, Optional

import polars as pl
from pydantic import AfterValidator


class LabeledEnumMeta(EnumType):
    """Metaclass for LabeledEnum that reserves canonical_field_name."""

    @classmethod
    def __prepare__(metacls, cls, bases, **kwds):  # noqa: ANN001, ANN003, ANN206, N804
        """Prepare the class namespace, ignoring reserved fields."""
        namespace = super().__prepare__(cls, bases, **kwds)
        namespace["_ignore_"] = ["canonical_field_name", "field_description"]
        return namespace

    def __new__(metacls, cls, bases, classdict, **kwds):  # noqa: ANN001, ANN003, ANN204
        """Create the enum class and keep reserved fields as attributes."""
        canonical_name = classdict.get("canonical_field_name")
        field_desc = classdict.get("field_description")

        enum_class = super().__new__(metacls, cls, bases, classdict, **kwds)

        if canonical_name is not None:
            enum_class.canonical_field_name = canonical_name
        if field_desc is not None:
            enum_class.field_description = field_desc

        return enum_class


class LabeledEnum(Enum, metaclass=LabeledEnumMeta):
    """Base class for enumerations with codes and labels.

    Each enum member is defined as a tuple of (code, label):
        MEMBER_NAME = ("member", "Member")

    Member order is significant: it is the sort order of the polars Enum
    returned by polars_dtype().

    Example:
        class Weekday(LabeledEnum):
            canonical_field_name = "week_day"

            SUNDAY = (1, "Sunday")
            MONDAY = (2, "Monday")

        Weekday.from_value(2)  # Weekday.MONDAY
        Weekday.from_label("Sunday")  # Weekday.SUNDAY
        Weekday.to_dict()  # {1: "Sunday", 2: "Monday"}
    """

    def __new__(cls, value: int | str, label: str) -> "LabeledEnum":
        """Create a new enum member with a raw code and a label."""
        obj = object.__new__(cls)
        obj._value_ = value
        obj._label_ = label
        return obj

    @property
    def label(self) -> str:
        """Get the human-readable label for this enum member."""
        return self._label_

    @property
    def field_name(self) -> str | None:
        """Get the canonical field name for this enum, if defined."""
        return getattr(self.__class__, "canonical_field_name", None)

    @property
    def description(self) -> str | None:
        """Get the field description for this enum, if defined."""
        return getattr(self.__class__, "field_description", None)

    @classmethod
    def from_value(cls, value: int | str) -> Optional["LabeledEnum"]:
        """Look up an enum member by its raw code, or None if not found."""
        for member in cls:
            if member.value == value:
                return member
        return None

    @classmethod
    def from_label(cls, label: str) -> Optional["LabeledEnum"]:
        """Look up an enum member by its label (case-sensitive), or None."""
        for member in cls:
            if member.label == label:
                return member
        return None

    @classmethod
    def get_field_name(cls) -> str | None:
        """Get the canonical field name for this enum class."""
        return getattr(cls, "canonical_field_name", None)

    @classmethod
    def get_description(cls) -> str | None:
        """Get the field description for this enum class."""
        return getattr(cls, "field_description", None)

    @classmethod
    def to_dict(cls) -> dict[int | str, str]:
        """Get a dictionary mapping raw codes to labels."""
        return {member.value: member.label for member in cls}

    @classmethod
    def labels(cls) -> list[str]:
        """Get all labels in declaration order."""
        return [member.label for member in cls]

    @classmethod
    def polars_dtype(cls) -> pl.Enum:
        """Get an ordered polars Enum dtype over the labels."""
        return pl.Enum(cls.labels())


def labeled(enum_cls: type[LabeledEnum]) -> type[str]:
    """Annotate a string field that must hold one of an enum's labels.

    Example:
        >>> class TripModel(BaseModel):
        ...     member_casual: labeled(RiderCategory)
    """

    def check_label(value: str) -> str:
        if enum_cls.from_label(value) is None:
            msg = (
                f"'{value}' is not a valid {enum_cls.__name__} label. "
                f"Expected one of: {', '.join(enum_cls.labels())}"
            )
            raise ValueError(msg)
        return value

    return Annotated[str, AfterValidator(check_label)]  # type: ignore[return-value]
