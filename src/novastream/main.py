"""FastAPI application entry point."""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .logging import configure_logging
from .providers.providers_base import MediaProvider


def create_app(
    config: AppConfig | None = None,
    *,
    media_provider: MediaProvider | None = None,
) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    cfg = config or load_config()
    configure_logging(cfg.log_level)
    app = FastAPI(title="NovaStream")
    include_routers(app, cfg, media_provider=media_provider)
    return app


app = create_app()


def run() -> None:
    """Serve the gateway with uvicorn on ``PORT``."""
    uvicorn.run(app, host="0.0.0.0", port=app.state.config.port, log_config=None)


if __name__ == "__main__":  # pragma: no cover - manual launch
    run()
