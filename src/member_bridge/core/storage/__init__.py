"""Member store backends."""

from loguru import logger

from src.member_bridge.runtime.config.config_data import ConfigData

from .member_store import InMemoryMemberStore, MemberStore


def build_member_store(config: ConfigData) -> MemberStore:
    """Create the member store selected by ``member_store.backend``."""
    store_cfg = config.member_store

    if store_cfg.backend == "memory":
        if config.app.environment == "production":
            logger.warning("In-memory member store in production; members are not persisted")
        return InMemoryMemberStore()

    if store_cfg.backend == "ghost":
        from .ghost_member_store import GhostAdminMemberStore

        logger.info("Using Ghost Admin API member store at {}", store_cfg.admin_url)
        return GhostAdminMemberStore(
            store_cfg.admin_url or "",
            store_cfg.admin_api_key or "",
            timeout=store_cfg.timeout_seconds,
            accept_version=store_cfg.accept_version,
        )

    from src.member_bridge.core.services.database.db_session import DbSessionService

    from .sql_member_store import SqlMemberStore

    db = DbSessionService(config.database, environment=config.app.environment)
    db.create_tables()
    return SqlMemberStore(db)


__all__ = ["MemberStore", "InMemoryMemberStore", "build_member_store"]
