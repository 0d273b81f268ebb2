"""Codebook enumerations for the trip table."""

from tripdata_canon.core.labeled_enum import LabeledEnum


class RiderCategory(LabeledEnum):
    """member_casual value labels.

    Codes are the raw values found in the monthly trip files.
    """

    canonical_field_name = "member_casual"
    field_description = "Subscription-based member or pass-based casual rider"

    MEMBER = ("member", "Member")
    CASUAL = ("casual", "Casual")


class Weekday(LabeledEnum):
    """week_day value labels, numbered from Sunday."""

    canonical_field_name = "week_day"
    field_description = "Day of the week the ride started"

    SUNDAY = (1, "Sunday")
    MONDAY = (2, "Monday")
    TUESDAY = (3, "Tuesday")
    WEDNESDAY = (4, "Wednesday")
    THURSDAY = (5, "Thursday")
    FRIDAY = (6, "Friday")
    SATURDAY = (7, "Saturday")


class Month(LabeledEnum):
    """month value labels."""

    canonical_field_name = "month"
    field_description = "Calendar month the ride started"

    JAN = (1, "Jan")
    FEB = (2, "Feb")
    MAR = (3, "Mar")
    APR = (4, "Apr")
    MAY = (5, "May")
    JUN = (6, "Jun")
    JUL = (7, "Jul")
    AUG = (8, "Aug")
    SEP = (9, "Sep")
    OCT = (10, "Oct")
    NOV = (11, "Nov")
    DEC = (12, "Dec")
