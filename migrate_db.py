import logging
from extensions import db
from sqlalchemy.exc import SQLAlchemyError

# imported so every table is registered on db.metadata
from accounts.models import User  # noqa: F401
from employees.models import Employee  # noqa: F401
from salary.models import SalaryRecord, SalaryExpense  # noqa: F401
from expenses.models import OtherExpense  # noqa: F401

logger = logging.getLogger(__name__)


def apply_migrations(app):
    with app.app_context():
        try:
            logger.info("Creating tables...")
            db.create_all()
            logger.info("Database migration successful")
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Migration failed: %s", e)
            raise


if __name__ == "__main__":
    from app import app
    apply_migrations(app)
