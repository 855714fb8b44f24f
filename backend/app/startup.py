"""
Application startup validation and initialization.

This module performs startup checks, creates missing tables and seeds the
configured kitchen stations before the application serves requests.
"""

import logging
import sys
from typing import List, Tuple

from sqlalchemy import text
import sqlalchemy as sa

from core.config import get_settings, validate_production_config
from core.database import Base, SessionLocal, engine

logger = logging.getLogger(__name__)

REQUIRED_TABLES = [
    "orders",
    "order_items",
    "order_audit_events",
    "menu_products",
    "dining_tables",
    "kitchen_stations",
]


def import_models():
    """Register every model with ``Base.metadata``"""
    from modules.orders.models import order_models  # noqa: F401
    from modules.menu.models import menu_models  # noqa: F401
    from modules.tables.models import table_models  # noqa: F401
    from modules.kds.models import kds_models  # noqa: F401


class StartupValidator:
    """Validates application startup requirements"""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def check_environment_config(self) -> bool:
        try:
            validate_production_config()
            return True
        except ValueError as e:
            self.errors.append(f"Configuration validation failed: {str(e)}")
            return False

    def check_database_connection(self) -> bool:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection successful")
            return True
        except Exception as e:
            self.errors.append(f"Database connection failed: {str(e)}")
            return False

    def check_required_tables(self) -> bool:
        try:
            existing_tables = sa.inspect(engine).get_table_names()
            missing_tables = [t for t in REQUIRED_TABLES if t not in existing_tables]
            if missing_tables:
                self.warnings.append(
                    f"Missing database tables: {', '.join(missing_tables)}"
                )
            return True
        except Exception as e:
            self.warnings.append(f"Could not check database tables: {str(e)}")
            return True

    def validate_all(self) -> Tuple[bool, List[str], List[str]]:
        """Run all validation checks"""
        checks = [
            ("Environment Configuration", self.check_environment_config),
            ("Database Connection", self.check_database_connection),
            ("Database Tables", self.check_required_tables),
        ]

        all_passed = True

        for check_name, check_func in checks:
            logger.info(f"Running check: {check_name}")
            if not check_func():
                all_passed = False

        return all_passed, self.errors, self.warnings


def init_database():
    """Create missing tables and seed the configured kitchen stations"""
    from modules.kds.services.kds_service import KDSService

    import_models()
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        KDSService(db, get_settings()).seed_stations()
    finally:
        db.close()


def run_startup_checks():
    """Run all startup validation checks"""
    settings = get_settings()
    logger.info("=" * 60)
    logger.info("Starting kitchen workflow service")
    logger.info(f"Environment: {settings.environment}")
    logger.info("=" * 60)

    validator = StartupValidator()
    passed, errors, warnings = validator.validate_all()

    for warning in warnings:
        logger.warning(f"Startup warning: {warning}")
    for error in errors:
        logger.error(f"Startup error: {error}")

    if not passed and settings.is_production:
        logger.error("Cannot start in production with errors!")
        sys.exit(1)
    elif not passed:
        logger.warning("Starting in development mode despite errors")
    else:
        logger.info("All startup checks passed")

    return passed, warnings


def configure_startup_logging():
    """Configure logging for startup"""
    logging.basicConfig(
        level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
