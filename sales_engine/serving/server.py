"""
uvicorn launch options derived from Settings.
"""

from typing import Any, Dict, Optional

from sales_engine.config import Settings, get_settings

APP_PATH = "sales_engine.serving.api.main:app"


def uvicorn_options(
    settings: Optional[Settings] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    reload: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    Keyword arguments for uvicorn.run.

    Host and port default to API_HOST and API_PORT. Reload follows DEBUG
    unless given, and is never enabled in production. Production also
    trusts proxy headers and hides the server header.
    """
    settings = settings or get_settings()
    if reload is None:
        reload = settings.debug
    reload = reload and not settings.is_production

    options: Dict[str, Any] = {
        "host": host or settings.api_host,
        "port": port or settings.api_port,
        "log_level": "debug" if settings.debug else settings.monitoring.log_level.lower(),
        "access_log": not settings.is_production,
        "proxy_headers": settings.is_production,
        "server_header": not settings.is_production,
        # the engine is held in process memory, one worker only
        "workers": 1,
    }
    if reload:
        options["reload"] = True
        options["reload_dirs"] = ["sales_engine"]
        del options["workers"]
    return options


def serve(**overrides) -> None:
    """Run the API in the foreground."""
    import uvicorn

    uvicorn.run(APP_PATH, **uvicorn_options(**overrides))
