"""Enumeration types for the follow-up models."""

from enum import Enum


class Stage(str, Enum):
    """Pipeline stages a customer's journey can be classified into.

    Declaration order matches the journey order; ordering comparisons still go
    through ``followup.engine.registry`` so the order is defined once.
    """

    GENERAL_NOTE = "General Note"
    CALL_STATUS = "Call Status"
    PROFILE_STATUS = "Profile Status"
    PAYMENT_DETAILS = "Payment Details"
    FUTURE_MATCH_STATUS = "Future Match Status"
    COMMUNICATION_STATUS = "Communication Status"
    PAST_MATCH_STATUS = "Past Match Status"
    MATCH_PROCESS_STATUS = "Match Process Status"
    MARRIAGE_PROGRESS_STATUS = "Marriage Progress Status"
    MARRIAGE_OUTCOME_STATUS = "Marriage Outcome Status"
    PROFILE_CLOSED_STATUS = "Profile Closed Status"


class StageStatus(str, Enum):
    """Progress of a single stage in a customer's timeline."""

    COMPLETED = "completed"
    CURRENT = "current"
    SKIPPED = "skipped"
    PENDING = "pending"


class Urgency(str, Enum):
    """How soon a reminder is due."""

    TODAY = "today"
    TOMORROW = "tomorrow"


class Gender(str, Enum):
    """Customer gender as reported by the directory."""

    MALE = "male"
    FEMALE = "female"
