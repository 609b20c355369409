"""Protocol upgrades for exam documents."""

from .upgrade import MigrationResult, migrate, migrate_file

__all__ = ["MigrationResult", "migrate", "migrate_file"]
