"""Enum definitions for members service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class MembershipScope(str, enum.Enum):
    """Organisational level a membership type is bound to."""

    GLOBAL = "global"
    ASSOCIATION = "association"
    CLUB = "club"
    TEAM = "team"


class BillingFrequency(str, enum.Enum):
    ONE_TIME = "one_time"
    ANNUAL = "annual"
    SEASONAL = "seasonal"


class MembershipStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    LIFE = "life"
