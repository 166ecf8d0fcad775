#!/usr/bin/env python3
"""
Loto Bonheur FastAPI Application Entrypoint

All routes live in lotobonheur/api.py; this file is just a simple
entrypoint for uvicorn. HOST, PORT and LOG_LEVEL come from the environment
(loaded from .env) or config/config.ini.
"""
from lotobonheur.api import app
from lotobonheur.config import get_int_setting, get_setting

if __name__ == "__main__":
    import uvicorn

    host = get_setting("api", "host", fallback="0.0.0.0")
    port = get_int_setting("api", "port", 8000)

    log_level = (get_setting("api", "log_level", fallback="info") or "info").lower()
    # Uvicorn supported levels: critical, error, warning, info, debug, trace
    if log_level not in {"critical", "error", "warning", "info", "debug", "trace"}:
        log_level = "info"

    uvicorn.run(app, host=host, port=port, log_level=log_level)
