"""
superset_sdk.api - Optional REST API Gateway
=============================================

This module provides an optional FastAPI-based REST gateway
exposing SQL Lab through the SDK.

Usage
-----
>>> from superset_sdk.api import create_app
>>> app = create_app()
>>> # Run with: uvicorn superset_sdk.api:app

Or run directly:
>>> python -m superset_sdk.api

"""

from pathlib import Path

from dotenv import load_dotenv

# Load .env before building the default app
env_path = Path.cwd() / ".env"
if env_path.exists():
    load_dotenv(env_path)

from superset_sdk.api.gateway import create_app, SupersetGateway  # noqa: E402

# Create default app instance for uvicorn
app = create_app()

__all__ = [
    "create_app",
    "SupersetGateway",
    "app",
]
