import os
import sys
import argparse
import logging
import traceback

# Adjust path to import from podindex
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
from podindex.config import Config
from podindex.db.factory import create_repository_from_config

# Setup basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

def initialize_database(config: Config):
    """
    Connects to the database and creates all tables defined in the models.
    """
    try:
        logging.info("Creating tables if they don't exist...")
        repository = create_repository_from_config(config, create_tables=True)
        repository.close()
        logging.info("Database initialization complete. All tables created successfully.")

    except Exception:
        logging.error("An error occurred during database initialization.")
        logging.error(traceback.format_exc()) # Log the full traceback
        sys.exit(1)

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the database. Creates tables if they don't exist.")
    parser.add_argument("--yes", "-y", action="store_true", help="Bypass confirmation prompt.")
    parser.add_argument("--env-file", help="Path to a custom .env file", default=None)
    args = parser.parse_args()

    logging.info("Starting database initialization script.")
    config = Config(env_file=args.env_file)

    if not config.DATABASE_URL:
        logging.error("DATABASE_URL is not set after config initialization. Exiting.")
        sys.exit(1)

    if not args.yes:
        confirm = input("Initialize the database? This will create tables but not delete existing data. (y/n): ")
        if confirm.lower() != 'y':
            logging.info("Database initialization cancelled by user.")
            sys.exit(0)

    initialize_database(config)
