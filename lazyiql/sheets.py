"""
Spreadsheet-facing functions. Both go through an ExpiringCache so repeated
cell evaluations don't burn through the Insight API rate limit.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from lazyiql.cache import ExpiringCache
from lazyiql.config import Settings, settings
from lazyiql.insight import InsightClient
from lazyiql.resolver import resolve_attribute_values
from lazyiql.store import FileStore

LIST_SEPARATOR = ";"


class SheetFunctions:
    def __init__(
        self,
        client: InsightClient,
        first_cache: Optional[ExpiringCache] = None,
        list_cache: Optional[ExpiringCache] = None,
    ):
        self.client = client
        # one cache each so the two blobs never overwrite one another
        self.first_cache = first_cache if first_cache is not None else ExpiringCache(name="lazyiql")
        self.list_cache = list_cache if list_cache is not None else ExpiringCache(name="lazyiql_list")

    @classmethod
    def from_settings(cls, settings: Settings) -> "SheetFunctions":
        cache_dir = Path(settings.cache_dir)

        def _cache(name: str) -> ExpiringCache:
            return ExpiringCache(
                store=FileStore(cache_dir / f"{name}.json"),
                limit=settings.cache_limit,
                expire_ms=settings.cache_expire_ms,
                name=name,
            )

        return cls(InsightClient.from_settings(settings), _cache("lazyiql"), _cache("lazyiql_list"))

    # ----------------------------- uncached -----------------------------

    def _first(self, iql: str, attribute: str, object_type: str, schema_id: str) -> Optional[str]:
        values = resolve_attribute_values(self.client, iql, attribute, object_type, schema_id)
        return values[0] if values else None

    def _joined(self, iql: str, attribute: str, object_type: str, schema_id: str) -> str:
        values = resolve_attribute_values(self.client, iql, attribute, object_type, schema_id)
        return LIST_SEPARATOR.join(values)

    # ----------------------------- cached -----------------------------

    def lazyiql(self, iql: str, attribute: str, object_type: str, schema_id: str) -> Optional[str]:
        """First value of `attribute` across the objects matching `iql`, or None."""
        return self.first_cache.get_or_compute((iql, attribute, object_type, schema_id), self._first)

    def lazyiql_list(self, iql: str, attribute: str, object_type: str, schema_id: str) -> str:
        """Every value of `attribute` across the objects matching `iql`, joined with ';'."""
        return self.list_cache.get_or_compute((iql, attribute, object_type, schema_id), self._joined)

    def flush(self) -> None:
        self.first_cache.flush()
        self.list_cache.flush()


_default: Optional[SheetFunctions] = None


def default_functions() -> SheetFunctions:
    """SheetFunctions built from the environment on first use."""
    global _default
    if _default is None:
        _default = SheetFunctions.from_settings(settings)
    return _default


def LAZYIQL(iql_search: str, attribute: str, object_name: str, object_schema_id: str) -> Optional[str]:
    return default_functions().lazyiql(iql_search, attribute, object_name, object_schema_id)


def LAZYIQL_LIST(iql_search: str, attribute: str, object_name: str, object_schema_id: str) -> str:
    return default_functions().lazyiql_list(iql_search, attribute, object_name, object_schema_id)
