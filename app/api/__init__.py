"""HTTP surface for the HCPCS Rate Suite.

The FastAPI app is imported lazily so that ``app.api.schemas`` and the
dependency helpers can be used without building the application.
"""

from __future__ import annotations


def __getattr__(name: str):
    if name == "app":
        from .fastapi_app import app

        return app
    raise AttributeError(name)


__all__ = ["app"]
