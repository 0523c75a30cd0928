from .database import (
    SessionFactory,
    create_db_engine,
    create_session_factory,
    engine_from_settings,
    init_db,
    read_scope,
    session_scope,
    validate_node_counts,
)

__all__ = [
    "SessionFactory",
    "create_db_engine",
    "create_session_factory",
    "engine_from_settings",
    "init_db",
    "read_scope",
    "session_scope",
    "validate_node_counts",
]
