# lazyiql/insight.py
from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from lazyiql.config import ConfigError, Settings
from lazyiql.metrics import metrics

# characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_iql(iql: str) -> str:
    return quote(iql, safe=_URI_COMPONENT_SAFE)


class InsightError(ValueError):
    """Insight answered with something other than the expected payload (usually an error body)."""

    def __init__(self, path: str, body: Any):
        detail = (body.get("errorMessages") or body.get("message")) if isinstance(body, dict) else None
        super().__init__(f"unexpected Insight response for {path}: {detail or body!r}")
        self.path = path
        self.body = body


class InsightClient:
    """
    Minimal synchronous client for the Jira Insight REST API.
    - Basic auth (account email + API token) on every call
    - HTTP error statuses are not raised; bodies are always parsed as JSON
    - No retry, no pagination
    """

    def __init__(
        self,
        base_url: str,
        email: str,
        api_key: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url
        self.auth = httpx.BasicAuth(email, api_key)
        self.headers = {"Content-Type": "application/json"}
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> "InsightClient":
        if not settings.credentials_loaded():
            raise ConfigError("JIRA_USER_EMAIL, JIRA_API_KEY and INSIGHT_BASE_URL must all be set")
        return cls(
            base_url=settings.insight_base_url,
            email=settings.jira_user_email,
            api_key=settings.jira_api_key,
            timeout=settings.http_timeout,
            transport=transport,
        )

    # ----------------------------- requests -----------------------------

    def fetch_path(self, path: str) -> Any:
        """GET base_url + path and return the decoded JSON body, whatever the status."""
        url = self.base_url + path
        metrics.inc("insight.requests")
        with metrics.timed("insight.fetch.ms"):
            with httpx.Client(transport=self.transport, timeout=self.timeout) as c:
                r = c.get(url, headers=self.headers, auth=self.auth)
        if r.is_error:
            metrics.inc(f"insight.status.{r.status_code}")
        return r.json()

    def _fetch_list(self, path: str) -> List[Dict[str, Any]]:
        body = self.fetch_path(path)
        if not isinstance(body, list):
            raise InsightError(path, body)
        return body

    def search_objects(self, iql: str) -> Dict[str, Any]:
        """Run an IQL search; the response carries the matches under 'objectEntries'."""
        path = "iql/objects?iql=" + encode_iql(iql)
        body = self.fetch_path(path)
        if not isinstance(body, dict) or "objectEntries" not in body:
            raise InsightError(path, body)
        return body

    # ----------------------------- schema lookups -----------------------------

    def object_type_id(self, type_name: str, schema_id: str | int) -> Optional[Any]:
        object_types = self._fetch_list(f"objectschema/{schema_id}/objecttypes")
        for object_type in object_types:
            if "name" in object_type and object_type["name"] == type_name:
                return object_type["id"]
        return None

    def attribute_id(self, attribute_name: str, type_name: str, schema_id: str | int) -> Optional[Any]:
        type_id = self.object_type_id(type_name, schema_id)
        if type_id is None:
            return None
        attributes = self._fetch_list(f"objecttype/{type_id}/attributes")
        for attribute in attributes:
            if attribute.get("name") == attribute_name:
                return attribute["id"]
        return None
