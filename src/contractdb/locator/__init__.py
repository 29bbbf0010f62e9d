"""Resource locators and change-notification codec."""

from contractdb.locator.codec import (
    LocatorCodec,
    matches_pattern,
    to_notification_locator,
    to_standard_locator,
)
from contractdb.locator.models import DataAction, Multiplicity, ParsedLocator

__all__ = [
    "DataAction",
    "LocatorCodec",
    "Multiplicity",
    "ParsedLocator",
    "matches_pattern",
    "to_notification_locator",
    "to_standard_locator",
]
