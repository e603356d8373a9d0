"""Database engine and session factory for the SQL member store."""

from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from src.member_bridge.runtime.config.config_data import DatabaseConfig


class DbSessionService:
    def __init__(
        self,
        db_config: DatabaseConfig,
        environment: str = "development",
        engine: Engine | None = None,
    ):
        """Initialize the shared database engine and session factory."""
        self._environment = environment
        if engine is not None:
            self._engine = engine
            return

        logger.info("Configuring database engine for environment: {}", environment)
        engine_kwargs: dict = {
            "echo": db_config.echo,
            "pool_pre_ping": True,
            "connect_args": self._get_connect_args(db_config.url),
        }

        if db_config.url.startswith("sqlite"):
            if ":memory:" in db_config.url:
                # One connection so every session sees the same in-memory database
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                {
                    "pool_size": db_config.pool_size,
                    "max_overflow": db_config.max_overflow,
                    "pool_timeout": db_config.pool_timeout,
                    "pool_recycle": db_config.pool_recycle,
                }
            )

        self._engine = create_engine(db_config.url, **engine_kwargs)

    @property
    def engine(self) -> Engine:
        return self._engine

    def _get_connect_args(self, url: str) -> dict:
        """Get database-specific connection arguments."""
        connect_args: dict = {}

        if url.startswith("postgresql"):
            connect_args.update(
                {
                    "application_name": f"{self._environment}_member_bridge",
                    "connect_timeout": 10,
                }
            )

        elif url.startswith("sqlite"):
            connect_args.update(
                {
                    "check_same_thread": False,
                    "timeout": 20,
                }
            )

            if self._environment == "production":
                logger.warning(
                    "SQLite is not recommended for production use. "
                    "Consider PostgreSQL for better performance and reliability."
                )

        return connect_args

    def create_tables(self) -> None:
        """Create the member tables if they do not exist yet."""
        from src.member_bridge.entities.core.member import MemberTable  # noqa: F401

        SQLModel.metadata.create_all(self._engine)

    def get_session(self) -> Session:
        """Return a new SQLModel session bound to the shared engine."""
        return Session(self._engine, expire_on_commit=False)

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                return True
        except SQLAlchemyError as e:
            logger.bind(error_type=type(e).__name__).error(
                "Database health check failed: {}", e
            )
            return False

    def dispose(self) -> None:
        self._engine.dispose()
