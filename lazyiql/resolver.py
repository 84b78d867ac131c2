# lazyiql/resolver.py
from __future__ import annotations

from typing import Any, Dict, List

from lazyiql.insight import InsightClient
from lazyiql.slog import log_event


def extract_attribute_values(search_result: Dict[str, Any], attribute_id: Any) -> List[str]:
    """
    First displayValue of every attribute matching attribute_id, across all
    objectEntries. IDs are compared as strings since the API is inconsistent
    about numeric vs string IDs. Attributes without any displayValue are
    skipped. A result with no objectEntries key raises KeyError.
    """
    wanted = str(attribute_id)
    out: List[str] = []
    for obj in search_result["objectEntries"]:
        for attr in obj.get("attributes") or []:
            if "objectTypeAttributeId" not in attr or str(attr["objectTypeAttributeId"]) != wanted:
                continue
            shown = [v["displayValue"] for v in attr.get("objectAttributeValues") or [] if v.get("displayValue") is not None]
            if shown:
                out.append(str(shown[0]))
    return out


def resolve_attribute_values(
    client: InsightClient,
    iql: str,
    attribute: str,
    type_name: str,
    schema_id: str | int,
) -> List[str]:
    attribute_id = client.attribute_id(attribute, type_name, schema_id)
    log_event("insight.attribute_id", attribute=attribute, object_type=type_name, attribute_id=attribute_id)
    if attribute_id is None:
        return []
    return extract_attribute_values(client.search_objects(iql), attribute_id)
