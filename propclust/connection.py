from __future__ import annotations

import logging
from dataclasses import dataclass


@dataclass
class DatabaseConfig:
    """Placeholder connection settings for the enterprise data warehouse.

    Values are left empty on purpose; fill in the driver (e.g. ``SQL Server``),
    server and database names locally. Nothing in the pipeline connects.
    """

    driver: str = ""
    server: str = ""
    database: str = ""
    trusted_connection: str = "True"

    def is_configured(self) -> bool:
        return all([self.driver, self.server, self.database])

    def connection_string(self) -> str:
        return (
            f"Driver={{{self.driver}}};"
            f"Server={self.server};"
            f"Database={self.database};"
            f"Trusted_Connection={self.trusted_connection}"
        )


def describe_connection(db: DatabaseConfig) -> str:
    if not db.is_configured():
        logging.info("Database connection not configured; running on synthetic data only.")
        return "unconfigured"
    logging.info("Database connection configured for %s/%s", db.server, db.database)
    return "configured"
