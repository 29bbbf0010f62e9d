"""Configuration constants.

Values here are part of the addressing and transport format and are NOT
user-configurable. For configurable values, see models.py.
"""

# =============================================================================
# Tables
# =============================================================================

DEFAULT_ID_FIELD = "_id"
"""Id column used when a table does not declare its own."""

WILDCARD_NUMERIC = "#"
"""Locator wildcard segment for tables keyed by integer ids."""

WILDCARD_STRING = "*"
"""Locator wildcard segment for tables keyed by string ids."""

# =============================================================================
# Locators and MIME types
# =============================================================================

MIME_CATEGORY_COLLECTION = "dir"
"""MIME category for a set of records."""

MIME_CATEGORY_SINGLE = "item"
"""MIME category for a single record."""

ACTION_SEPARATOR = "@"
"""Separates a data-action tag from the authority in notification locators."""

QUERY_LIMIT = "limit"
QUERY_OFFSET = "offset"
"""Locator query parameters honoured by the reference resolver."""

# =============================================================================
# Envelope
# =============================================================================

ORIGINATING_LOCATOR_KEY = "contractdb.extra.ORIGINATING_LOCATOR"
"""Envelope key under which a record stores its own locator."""

ENVELOPE_LOCATOR_KIND = "locator"
"""Entry kind for locator values inside an envelope."""
