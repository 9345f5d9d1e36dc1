"""Flask route blueprints for the docchat client application."""

from docchat.client.routes.config import get_config, init_config
from docchat.client.routes.documents import documents_bp
from docchat.client.routes.health import health_bp
from docchat.client.routes.history import history_bp
from docchat.client.routes.ingest import ingest_bp
from docchat.client.routes.query import query_bp

__all__ = [
    "documents_bp",
    "health_bp",
    "history_bp",
    "ingest_bp",
    "query_bp",
    "init_config",
    "get_config",
]
