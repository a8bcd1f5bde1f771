"""Core database functionality and configuration.

This module provides database management with configuration, connection
pooling and session handling. The relational database is the only shared
mutable resource of the service.
"""

from contextlib import contextmanager
import logging
from pathlib import Path
from typing import Optional, Dict, Any, Generator

from sqlalchemy import create_engine, event, Engine, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..models import Base
from ..config.environment import IS_PRODUCTION_ENVIRONMENT
from ..config.settings import Config

logger = logging.getLogger(__name__)

class DatabaseConfig:
    """Database configuration settings."""
    
    def __init__(
        self,
        sqlite_path: Optional[Path] = None,
        postgres_url: Optional[str] = None,
        url: Optional[str] = None,
        echo: bool = False,
        pool_size: int = 3,
        max_overflow: int = 4,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        pool_pre_ping: bool = True
    ):
        """
        Initialize database configuration.

        In production environment, DATABASE_URL must be set in environment variables
        or provided explicitly via postgres_url parameter.

        Args:
            sqlite_path: Path to SQLite database file (for development)
            postgres_url: PostgreSQL connection URL (for production)
                        If not provided, will use DATABASE_URL env variable
            url: Explicit SQLAlchemy URL; overrides the environment-based choice
                 (used by the test suite)
            echo: Whether to echo SQL statements
            pool_size: Size of the connection pool (permanent connections)
            max_overflow: Maximum number of extra connections to allow temporarily
                        (total connections = pool_size + max_overflow)
            pool_timeout: Seconds to wait for an available connection
            pool_recycle: Seconds before connections are recycled (prevent stale)
            pool_pre_ping: Whether to ping connections before using them

        Raises:
            ValueError: If in production environment and no database URL is provided
                      either via postgres_url parameter or DATABASE_URL env variable
        """
        self.url = url
        self.postgres_url = None
        self.sqlite_path = None

        if url is None:
            if IS_PRODUCTION_ENVIRONMENT:
                self.postgres_url = postgres_url or Config.DATABASE_URL
                if not self.postgres_url:
                    raise ValueError(
                        "Database URL must be provided either via postgres_url parameter "
                        "or DATABASE_URL environment variable when in production environment"
                    )
            else:
                default_path = Path(__file__).parent.parent.parent / 'data' / 'eventstaff.db'
                self.sqlite_path = sqlite_path or Path(Config.SQLITE_PATH or default_path)
        
        self.echo = echo
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.pool_recycle = pool_recycle
        self.pool_pre_ping = pool_pre_ping
    
    @property
    def connection_url(self) -> str:
        """Get the database connection URL based on environment."""
        if self.url:
            return self.url
        if self.postgres_url:
            return self.postgres_url
        if not self.sqlite_path:
            raise ValueError("SQLite path not configured")
        return f"sqlite:///{self.sqlite_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.connection_url.startswith('sqlite')
    
    def get_engine_args(self) -> Dict[str, Any]:
        """Get SQLAlchemy engine arguments based on configuration."""
        args = {"echo": self.echo}
        
        # SQLite-specific configuration
        if self.is_sqlite:
            args["connect_args"] = {"check_same_thread": False}
            args["poolclass"] = StaticPool
        
        # PostgreSQL-specific configuration
        else:
            args.update({
                "pool_size": self.pool_size,
                "max_overflow": self.max_overflow,
                "pool_timeout": self.pool_timeout,
                "pool_recycle": self.pool_recycle,
                "pool_pre_ping": self.pool_pre_ping
            })
        
        return args

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless enabled per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

class DatabaseError(Exception):
    """Base exception for database-related errors."""
    pass

class ConnectionError(DatabaseError):
    """Raised when there are issues connecting to the database."""
    pass

class SessionError(DatabaseError):
    """Raised when there are issues with database sessions."""
    pass

class Database:
    """Core database management class implementing the singleton pattern."""
    
    _instance = None
    
    def __new__(cls, config: Optional[DatabaseConfig] = None):
        """Ensure only one instance exists."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance
    
    def __init__(self, config: Optional[DatabaseConfig] = None):
        """Initialize the database manager if not already initialized."""
        if self._initialized:
            return
        
        self.config = config
        self.engine: Optional[Engine] = None
        self._session_factory = sessionmaker(expire_on_commit=False)
        self._scoped_session = scoped_session(self._session_factory)
        self._tables_checked = False
        self._initialized = True
    
    def configure(self, config: DatabaseConfig) -> None:
        """Point the instance at a different database, disposing the old engine."""
        if self.engine is not None:
            self._scoped_session.remove()
            self.engine.dispose()
        self.config = config
        self.engine = None
        self._tables_checked = False
        self._setup_engine()
    
    def _setup_engine(self) -> None:
        """Set up the SQLAlchemy engine."""
        if self.config is None:
            self.config = DatabaseConfig()
        try:
            if self.config.sqlite_path:
                self.config.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(
                self.config.connection_url,
                **self.config.get_engine_args()
            )
            if self.config.is_sqlite:
                event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
            self._session_factory.configure(bind=self.engine)
        except Exception as e:
            raise ConnectionError(f"Failed to create database engine: {e}") from e

    def _require_engine(self) -> Engine:
        if self.engine is None:
            self._setup_engine()
        return self.engine
    
    def init_db(self) -> None:
        """Initialize the database schema."""
        engine = self._require_engine()
        
        try:
            Base.metadata.create_all(engine)
            self._tables_checked = True
            logger.info("Database schema initialized successfully")
        except Exception as e:
            raise DatabaseError(f"Failed to initialize database schema: {e}") from e

    def drop_all(self) -> None:
        """Drop every table known to the models."""
        Base.metadata.drop_all(self._require_engine())
        self._tables_checked = False
    
    def ensure_tables_exist(self) -> None:
        """Ensure all required database tables exist."""
        if not self._tables_checked:
            engine = self._require_engine()
            
            try:
                inspector = inspect(engine)
                existing_tables = inspector.get_table_names()
                required_tables = set(Base.metadata.tables.keys())
                
                if not all(table in existing_tables for table in required_tables):
                    logger.info("Some tables missing, initializing database schema")
                    Base.metadata.create_all(engine)
                    logger.info("Database schema initialized successfully")
                
                self._tables_checked = True
                
            except Exception as e:
                raise DatabaseError(f"Failed to verify/create database schema: {e}") from e
    
    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.
        
        This is the preferred way to get a database session. It handles
        commit/rollback automatically and ensures proper cleanup.
        
        Example:
            with db.session() as session:
                event = session.get(InternalEvent, event_id)
                event.title = "New Title"
                # No need to call commit - it's handled automatically
        
        Raises:
            SessionError: If there are issues with the session
            DatabaseError: If database schema verification fails
        """
        # Ensure tables exist before providing a session
        self.ensure_tables_exist()
        
        session = self._scoped_session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise SessionError(f"Database session error: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
            self._scoped_session.remove()

# Create the global database instance; the engine is created on first use
db = Database()
