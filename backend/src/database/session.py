"""Engine and session factory setup."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.conf.config import Config
from backend.src.database.models import Base

logger = logging.getLogger(__name__)

SessionFactory = sessionmaker[Session]

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def create_session_factory(
    database_url: Optional[str] = None, echo: Optional[bool] = None
) -> SessionFactory:
    """Create the engine, make sure the schema exists and return a session factory.

    Args:
        database_url: SQLAlchemy url, defaults to Config.DATABASE_URL
        echo: Whether to log SQL statements, defaults to Config.DATABASE_ECHO

    Returns:
        Session factory bound to the engine. Objects stay usable after commit.
    """
    url = database_url or Config.DATABASE_URL
    engine_options: Dict[str, Any] = {}

    if url.startswith("sqlite"):
        # Flask serves requests from several threads
        engine_options["connect_args"] = {"check_same_thread": False}
        if url in IN_MEMORY_URLS:
            # Every connection would otherwise see its own empty database
            engine_options["poolclass"] = StaticPool
        else:
            Path(url.replace("sqlite:///", "", 1)).parent.mkdir(
                parents=True, exist_ok=True
            )
    else:
        engine_options["pool_pre_ping"] = True

    engine = create_engine(
        url,
        echo=Config.DATABASE_ECHO if echo is None else echo,
        **engine_options,
    )
    Base.metadata.create_all(engine)
    logger.info(f"Database initialized ({engine.url.render_as_string(hide_password=True)})")

    return sessionmaker(bind=engine, expire_on_commit=False)
