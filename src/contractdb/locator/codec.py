"""Resource locators, notification locators and MIME types.

Locator layout::

    <scheme>://[<action>@]<authority>/<table>[/<id or wildcard>][?limit=N&offset=M]

``authority`` is ``<authority_prefix>.<db name>``. A locator with an action
tag in front of the authority is a *notification locator*: the resolver
publishes changes on it so observers can tell inserts, updates and deletes
apart. :func:`to_standard_locator` turns any locator back into the plain
form usable for CRUD.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl, quote, unquote

from contractdb.config.constants import ACTION_SEPARATOR, WILDCARD_NUMERIC, WILDCARD_STRING
from contractdb.config.models import LocatorConfig
from contractdb.locator.models import DataAction, Multiplicity, ParsedLocator

if TYPE_CHECKING:
    from contractdb.schema.models import TableSchema

# scheme :// authority  rest(path, query, fragment)
_LOCATOR_RE = re.compile(r"^(?P<scheme>[^:/?#]+)://(?P<authority>[^/?#]*)(?P<rest>.*)$", re.DOTALL)


def _split(locator: str) -> tuple[str, str, str] | None:
    match = _LOCATOR_RE.match(locator)
    if match is None or not match.group("authority"):
        return None
    return match.group("scheme"), match.group("authority"), match.group("rest")


def to_standard_locator(locator: str) -> str:
    """Strip any data-action tag from the authority.

    Safe on standard locators (returned unchanged) and on malformed input
    (returned unchanged, never raises).
    """
    if not isinstance(locator, str):
        return locator
    parts = _split(locator)
    if parts is None:
        return locator
    scheme, authority, rest = parts
    # Cut at the last separator rather than the first: a doubly tagged
    # authority then loses every tag and a second call is a no-op. Single-tag
    # locators come out the same either way.
    idx = authority.rfind(ACTION_SEPARATOR)
    if idx < 0:
        return locator
    return f"{scheme}://{authority[idx + 1 :]}{rest}"


def to_notification_locator(locator: str, action: DataAction) -> str:
    """Tag ``locator`` with ``action``, replacing any tag already present."""
    standard = to_standard_locator(locator)
    parts = _split(standard)
    if parts is None or action is DataAction.NONE:
        return standard
    scheme, authority, rest = parts
    return f"{scheme}://{action.tag}{authority}{rest}"


def matches_pattern(pattern: str, locator: str) -> bool:
    """Match ``locator`` against a pattern built by ``wildcard_locator``.

    ``#`` matches one all-digit segment, ``*`` matches any one segment.
    Query strings and action tags on ``locator`` are ignored.
    """
    target = to_standard_locator(locator).split("?", 1)[0].split("#", 1)[0]
    pattern_parts = pattern.split("/")
    target_parts = target.split("/")
    if len(pattern_parts) != len(target_parts):
        return False
    for want, got in zip(pattern_parts, target_parts, strict=True):
        if want == WILDCARD_NUMERIC:
            if not got.isdigit():
                return False
        elif want == WILDCARD_STRING:
            if not got:
                return False
        elif want != got:
            return False
    return True


def _table_name(table: TableSchema | str) -> str:
    return table if isinstance(table, str) else table.name


class LocatorCodec:
    """Derives the addressing scheme of one database."""

    def __init__(self, db_name: str, config: LocatorConfig | None = None) -> None:
        self.db_name = db_name
        self.config = config or LocatorConfig()

    @property
    def scheme(self) -> str:
        return self.config.scheme

    def authority(self) -> str:
        return f"{self.config.authority_prefix}.{self.db_name}"

    def base_mime_subtype(self) -> str:
        return f"{self.config.mime_subtype_prefix}.{self.db_name}"

    def notification_locator(self, table: TableSchema | str, action: DataAction) -> str:
        return f"{self.scheme}://{action.tag}{self.authority()}/{quote(_table_name(table), safe='')}"

    def locator_for(self, table: TableSchema | str, record_id: object | None = None) -> str:
        """Collection locator when ``record_id`` is None, else the record's locator."""
        base = self.notification_locator(table, DataAction.NONE)
        if record_id is None:
            return base
        return f"{base}/{quote(str(record_id), safe='')}"

    def wildcard_locator(self, table: TableSchema) -> str:
        """Row match pattern: the collection locator plus ``#`` or ``*``."""
        return f"{self.locator_for(table)}/{table.wildcard}"

    def mime_type(self, table: TableSchema | str, multiplicity: Multiplicity) -> str:
        return f"{multiplicity.category}/{self.base_mime_subtype()}.{_table_name(table)}"

    def database_mime_type(self) -> str:
        return f"{Multiplicity.COLLECTION.category}/{self.base_mime_subtype()}"

    def parse(self, locator: str) -> ParsedLocator | None:
        """Split a locator of this database into routing parts.

        Returns None for foreign schemes/authorities, unknown action tags, and
        paths that are neither ``/<table>`` nor ``/<table>/<id>``.
        """
        parts = _split(locator)
        if parts is None:
            return None
        scheme, authority, rest = parts
        if scheme != self.scheme:
            return None

        action = DataAction.NONE
        idx = authority.rfind(ACTION_SEPARATOR)
        if idx >= 0:
            parsed_action = DataAction.from_tag(authority[:idx])
            if parsed_action is None:
                return None
            action = parsed_action
            authority = authority[idx + 1 :]
        if authority != self.authority():
            return None

        path, _, query = rest.split("#", 1)[0].partition("?")
        segments = path.strip("/").split("/") if path.strip("/") else []
        if not 1 <= len(segments) <= 2:
            return None

        return ParsedLocator(
            scheme=scheme,
            authority=authority,
            table=unquote(segments[0]),
            id_segment=unquote(segments[1]) if len(segments) == 2 else None,
            action=action,
            query=dict(parse_qsl(query)),
        )
