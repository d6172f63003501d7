"""
superset_sdk.api - Run as module

Usage: python -m superset_sdk.api
"""

import logging
import os

import uvicorn


def main():
    """Run the API gateway server."""
    host = os.environ.get("SUPERSET_GATEWAY_HOST", "0.0.0.0")
    port = int(os.environ.get("SUPERSET_GATEWAY_PORT", "5050"))
    reload = os.environ.get("SUPERSET_GATEWAY_RELOAD", "false").lower() == "true"
    log_level = os.environ.get("SUPERSET_GATEWAY_LOG_LEVEL", "info")

    logging.basicConfig(level=log_level.upper())
    logging.getLogger("superset_sdk").info("Starting Superset SQL Gateway on %s:%s", host, port)

    uvicorn.run(
        "superset_sdk.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
