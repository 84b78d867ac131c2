from pydantic import BaseModel
from dotenv import load_dotenv
import os

load_dotenv()  # loads .env if present


class ConfigError(RuntimeError):
    """Raised when the Insight credentials are not configured."""


def _float_or_none(raw: str | None) -> float | None:
    return float(raw) if raw else None


class Settings(BaseModel):
    # Base URL looks like https://api.atlassian.com/jsm/insight/workspace/{workspace id}/v1/
    jira_user_email: str | None = os.getenv("JIRA_USER_EMAIL")
    jira_api_key: str | None = os.getenv("JIRA_API_KEY")
    insight_base_url: str | None = os.getenv("INSIGHT_BASE_URL")

    cache_dir: str = os.getenv("LAZYIQL_CACHE_DIR", ".lazyiql_cache")
    cache_limit: int = int(os.getenv("LAZYIQL_CACHE_LIMIT", "1000"))
    cache_expire_ms: int = int(os.getenv("LAZYIQL_CACHE_EXPIRE_MS", str(1000 * 60 * 60 * 24)))  # 24 hours
    http_timeout: float | None = _float_or_none(os.getenv("LAZYIQL_HTTP_TIMEOUT"))

    def credentials_loaded(self) -> bool:
        return bool(self.jira_user_email and self.jira_api_key and self.insight_base_url)


settings = Settings()
