"""
FoamBoss Estimator — process bootstrap.

Reads runtime configuration, installs structured logging and prepares the
database. Callers get back a session factory for the repositories.
"""
import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from foamboss.config import AppConfig, load_app_config
from foamboss.db import init_database
from foamboss.services.logging_config import setup_logging

logger = logging.getLogger("foamboss-app")


def bootstrap(config: Optional[AppConfig] = None) -> sessionmaker:
    config = config or load_app_config()
    setup_logging(level=config.log_level, json_output=config.json_logs)
    session_factory = init_database(config.database_url)
    logger.info("FoamBoss estimator ready")
    return session_factory
