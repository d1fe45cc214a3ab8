"""Import all SQLAlchemy ORM models so Alembic sees a complete metadata graph."""

from __future__ import annotations

# Import ORM modules for side effects so models register with Base.metadata.
import waves.schema.community  # noqa: F401
import waves.schema.notifications  # noqa: F401
