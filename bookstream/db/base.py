# bookstream/db/base.py
# Alembic model registry -- imports Base + every model so Alembic detects all tables.
# Do NOT import this file from model files (use bookstream.db.base_class instead).
# This file is imported by:
#   - alembic/env.py        (schema detection)
#   - endpoint modules      (so relationships resolve before the first query)

from bookstream.db.base_class import Base  # noqa: F401

# Order matters: parent tables before child tables (foreign key dependencies)
from bookstream.models.user import User                          # noqa: F401, E402
from bookstream.models.book import Book                          # noqa: F401, E402
from bookstream.models.reading_progress import ReadingProgress   # noqa: F401, E402
