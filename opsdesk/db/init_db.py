import logging

from opsdesk.db.base_class import Base
from opsdesk.db.session import engine
import opsdesk.models # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)

def init_db(bind=engine) -> None:
    """Create missing tables. Idempotent; existing tables are left as they are."""
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database schema ready on {bind.url.render_as_string(hide_password=True)}")
