"""trailhub main entrypoint.

- Unified FastAPI app: content, progress and assessment routes behind one ASGI app
- CLI to serve the API, expose Prometheus metrics, or print the effective config
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
import uvicorn
from fastapi import FastAPI
from dotenv import load_dotenv

load_dotenv(".env")

from packages.common.config import get_settings  # noqa: E402
from packages.common.db import init_db  # noqa: E402
from packages.common.errors import ConfigurationError  # noqa: E402
from packages.common.logging import configure_logging  # noqa: E402
from packages.common.metrics import start_metrics_server  # noqa: E402
from packages.common.tracing import trace_middleware  # noqa: E402
from services.assessment.app import configuration_error_handler, router as assessment_router  # noqa: E402
from services.content.routes import router as content_router  # noqa: E402

logger = logging.getLogger("trailhub.main")

# ===== App (ASGI) =====
app = FastAPI(title="trailhub Unified API", version="1.0.0")
app.middleware("http")(trace_middleware)
app.add_exception_handler(ConfigurationError, configuration_error_handler)
app.include_router(content_router)
app.include_router(assessment_router)


@app.get("/health", tags=["system"])
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.on_event("startup")
async def _init() -> None:
    await init_db()
    logger.info("trailhub unified API ready")


def _print_config() -> int:
    s = get_settings()
    # Connection strings may carry credentials.
    data = s.model_dump()
    data["DATABASE_URL"] = data["DATABASE_URL"].split("@")[-1]
    print(json.dumps(data, indent=2, default=str))
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint.

    Modes:
      serve         run the unified API with uvicorn (default)
      print-config  dump the effective settings as JSON
    """
    ap = argparse.ArgumentParser(description="trailhub learning-trail service")
    ap.add_argument("--mode", choices=["serve", "print-config"], default="serve")
    ap.add_argument("--host", default="0.0.0.0")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--metrics-port", type=int, default=None,
                    help="expose Prometheus metrics on this port")
    ap.add_argument("--reload", action="store_true")
    args = ap.parse_args(argv)

    configure_logging(get_settings().LOG_LEVEL, get_settings().SERVICE_NAME)

    if args.mode == "print-config":
        return _print_config()

    if args.metrics_port:
        start_metrics_server(args.metrics_port)
        logger.info(f"metrics exposed on :{args.metrics_port}")
    uvicorn.run("main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
