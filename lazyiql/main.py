from fastapi import FastAPI, Request
from lazyiql.config import settings
from lazyiql.__about__ import __app_name__, __version__
from lazyiql.routers_sheets import router as sheets_router
from lazyiql.metrics import metrics
from pathlib import Path
import os
import time

app = FastAPI(
    title="LazyIQL",
    version=__version__,
    description="Cached Jira Insight IQL lookups for spreadsheets.",
)


def cache_dir_writable(cache_dir: str) -> bool:
    """True if the cache files can be written: the dir, or its nearest existing parent, is writable."""
    path = Path(cache_dir).resolve()
    while not path.exists():
        path = path.parent
    return path.is_dir() and os.access(path, os.W_OK)


# request count + per-path latency, read back from /_metrics
@app.middleware("http")
async def track_requests(request: Request, call_next):
    start = time.perf_counter()
    try:
        return await call_next(request)
    finally:
        metrics.inc("http.requests.total")
        metrics.observe_ms(
            f"http.latency.{request.method}.{request.url.path}",
            (time.perf_counter() - start) * 1000.0,
        )


@app.get("/health")
def health():
    """
    Reports whether the Insight credentials are set (never their values) and
    whether the cache directory can be written. "degraded" means lookups will
    fail until that is fixed.
    """
    credentials = settings.credentials_loaded()
    writable = cache_dir_writable(settings.cache_dir)
    return {
        "app": __app_name__,
        "version": __version__,
        "jira_email_loaded": bool(settings.jira_user_email),
        "jira_key_loaded": bool(settings.jira_api_key),
        "base_url_loaded": bool(settings.insight_base_url),
        "cache_dir": settings.cache_dir,
        "cache_dir_writable": writable,
        "status": "ok" if credentials and writable else "degraded",
    }


@app.get("/_metrics")
def get_metrics():
    return metrics.snapshot()


app.include_router(sheets_router, prefix="/sheets")
