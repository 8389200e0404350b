"""HTTP surface of the page acquisition service.

Exposes the configured FastAPI instance (``/scrape`` and
``/marketing-report``) so it can be served directly::

    uvicorn backend.api:app
"""

from backend.api.app import app

__all__ = ["app"]
