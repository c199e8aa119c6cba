import logging

from config import configure_logging
from pay_equity_data import initialize_database
from database.migrations.init_email_templates import seed_email_templates

configure_logging()
logger = logging.getLogger(__name__)


def main():
    try:
        # Initialize database schema
        initialize_database()
        logger.info("Database schema initialized")

        # Seed default email templates
        added = seed_email_templates()
        logger.info(f"Email templates initialized ({added} added)")

    except Exception as e:
        logger.error(f"Error during initialization: {str(e)}")
        raise


if __name__ == "__main__":
    main()
