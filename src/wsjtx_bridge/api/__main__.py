# src/wsjtx_bridge/api/__main__.py
from __future__ import annotations

import uvicorn

from wsjtx_bridge.env import load_dotenv_if_present


def main() -> None:
    # Load .env early so WSJTX_BRIDGE_* vars exist before anything reads them.
    load_dotenv_if_present()

    # Import after dotenv load (config is read inside create_app)
    from wsjtx_bridge.api.app import create_app
    from wsjtx_bridge.api.config import load_bridge_config
    from wsjtx_bridge.api.structured_logging import configure_structured_logging

    configure_structured_logging()
    cfg = load_bridge_config()

    # logging is already configured; RequestLogMiddleware replaces the access log
    uvicorn.run(
        create_app(cfg=cfg),
        host=cfg.http_host,
        port=cfg.http_port,
        log_config=None,
        access_log=False,
    )


if __name__ == "__main__":
    main()
