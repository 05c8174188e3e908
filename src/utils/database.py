"""Database connection management utilities."""
import logging
import os
from contextlib import contextmanager
from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.models import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE SET NULL unless foreign keys are switched on
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Engine and session factory for one application instance.

    Each app builds its own ``Database`` from its ``DatabaseConfig``; there is
    no module-level engine.
    """

    def __init__(self, config, is_production=False):
        self.url = config.url
        self.engine = self._create_engine(config, is_production)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    @staticmethod
    def _create_engine(config, is_production):
        db_url = config.url

        if db_url.startswith('sqlite'):
            database_path = make_url(db_url).database
            if database_path and database_path != ":memory:":
                os.makedirs(os.path.dirname(os.path.abspath(database_path)), exist_ok=True)
            engine_kwargs = {
                "connect_args": {"check_same_thread": False},
                "echo": config.echo,
            }
            if db_url in ('sqlite://', 'sqlite:///:memory:'):
                # One shared connection, otherwise every session sees an empty database
                engine_kwargs["poolclass"] = StaticPool
            engine = create_engine(db_url, **engine_kwargs)
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            logger.info("Database engine initialized (SQLite)")
            return engine

        if is_production:
            engine = create_engine(
                db_url,
                pool_size=3,  # persistent connections per worker
                max_overflow=2,
                pool_pre_ping=True,  # Verify connections before using
                pool_recycle=300,
                pool_timeout=10,
                connect_args={
                    "connect_timeout": 10,
                    "options": "-c statement_timeout=30000"
                },
                echo=config.echo,
            )
            logger.info(f"Database engine initialized for production with connection pooling: pool_size={engine.pool.size()}")
            return engine

        engine = create_engine(
            db_url,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            pool_recycle=3600,
            echo=config.echo,
        )
        logger.info("Database engine initialized for development with connection pooling")
        return engine

    def get_session(self):
        """Get a new database session."""
        return self.session_factory()

    @contextmanager
    def session_scope(self):
        """Provide a transactional scope around a series of operations.

        Usage:
            with database.session_scope() as session:
                # use session here
                # automatically commits on success, rolls back on error
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_schema(self):
        """Create the users and metrics tables if they do not exist."""
        Base.metadata.create_all(self.engine)
        logger.info("Database tables created/verified")

    def dispose(self):
        """Release pooled connections (useful for worker shutdown)."""
        try:
            self.engine.dispose()
            logger.info("Database engine disposed successfully")
        except Exception as e:
            logger.warning(f"Error disposing database engine: {e}")
