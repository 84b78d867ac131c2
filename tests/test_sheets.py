import httpx
import pytest

from lazyiql import sheets
from lazyiql.cache import ExpiringCache
from lazyiql.config import Settings
from lazyiql.insight import InsightError
from lazyiql.sheets import SheetFunctions

TWO_OWNERS = {
    "objectEntries": [
        {"attributes": [{"objectTypeAttributeId": 9, "objectAttributeValues": [{"displayValue": "Alice"}]}]},
        {"attributes": [{"objectTypeAttributeId": 9, "objectAttributeValues": [{"displayValue": "Bob"}]}]},
    ]
}

ARGS = ("objectType = Server", "Owner", "Server", "10")


def _routes(search):
    return {
        "objectschema/10/objecttypes": [{"id": 2, "name": "Server"}],
        "objecttype/2/attributes": [{"id": 9, "name": "Owner"}],
        "iql/objects": search,
    }


def test_lazyiql_returns_first_value(fake_insight):
    client, _ = fake_insight(_routes(TWO_OWNERS))
    assert SheetFunctions(client).lazyiql(*ARGS) == "Alice"


def test_lazyiql_list_joins_with_semicolons(fake_insight):
    client, _ = fake_insight(_routes(TWO_OWNERS))
    assert SheetFunctions(client).lazyiql_list(*ARGS) == "Alice;Bob"


def test_no_match_gives_none_and_empty_string(fake_insight):
    client, _ = fake_insight(_routes({"objectEntries": []}))
    fns = SheetFunctions(client)
    assert fns.lazyiql(*ARGS) is None
    assert fns.lazyiql_list(*ARGS) == ""


def test_repeat_calls_do_not_hit_the_api(fake_insight):
    client, seen = fake_insight(_routes(TWO_OWNERS))
    fns = SheetFunctions(client)
    fns.lazyiql(*ARGS)
    fns.lazyiql_list(*ARGS)
    after_first = len(seen)
    assert after_first == 6  # type lookup, attribute lookup, search; once per function

    fns.lazyiql(*ARGS)
    fns.lazyiql_list(*ARGS)
    assert len(seen) == after_first

    fns.flush()
    fns.lazyiql(*ARGS)
    assert len(seen) == after_first + 3


def test_functions_keep_separate_caches(fake_insight):
    client, _ = fake_insight(_routes(TWO_OWNERS))
    first, listed = ExpiringCache(name="a"), ExpiringCache(name="b")
    fns = SheetFunctions(client, first, listed)
    fns.lazyiql(*ARGS)
    fns.lazyiql_list(*ARGS)
    assert len(first) == 1 and len(listed) == 1
    assert first.store.blob != listed.store.blob


def test_from_settings_uses_file_stores(tmp_path):
    s = Settings(
        jira_user_email="me@example.com",
        jira_api_key="tok",
        insight_base_url="https://insight.example/v1/",
        cache_dir=str(tmp_path / "cache"),
        cache_limit=50,
        cache_expire_ms=60_000,
    )
    fns = SheetFunctions.from_settings(s)
    assert fns.first_cache.max_entries == 50
    assert fns.list_cache.ttl_ms == 60_000
    assert fns.first_cache.store.path == tmp_path / "cache" / "lazyiql.json"
    assert fns.list_cache.store.path == tmp_path / "cache" / "lazyiql_list.json"


def test_module_level_functions_use_default_instance(fake_insight, monkeypatch):
    client, _ = fake_insight(_routes(TWO_OWNERS))
    monkeypatch.setattr(sheets, "_default", SheetFunctions(client))
    assert sheets.LAZYIQL(*ARGS) == "Alice"
    assert sheets.LAZYIQL_LIST(*ARGS) == "Alice;Bob"


def test_rate_limited_lookup_is_not_cached(fake_insight):
    routes = _routes(TWO_OWNERS)
    routes["objectschema/10/objecttypes"] = httpx.Response(429, json={"errorMessages": ["Rate limit exceeded"]})
    client, seen = fake_insight(routes)
    fns = SheetFunctions(client)
    with pytest.raises(InsightError):
        fns.lazyiql(*ARGS)
    assert fns.first_cache.store.load() is None

    routes["objectschema/10/objecttypes"] = [{"id": 2, "name": "Server"}]
    assert fns.lazyiql(*ARGS) == "Alice"
    assert len(seen) == 4


def test_bad_iql_is_not_cached(fake_insight):
    client, _ = fake_insight(_routes(httpx.Response(400, json={"errorMessages": ["IQL syntax error"]})))
    fns = SheetFunctions(client)
    with pytest.raises(InsightError):
        fns.lazyiql_list(*ARGS)
    assert fns.list_cache.store.load() is None
