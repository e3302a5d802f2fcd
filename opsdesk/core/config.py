import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./opsdesk.db")
SQLALCHEMY_DATABASE_URI = DATABASE_URL

# JWT Settings
SECRET_KEY: str = os.getenv("SECRET_KEY", "change_me_opsdesk_secret_key") # In a real deployment, set a strong random key in .env
ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))

# Commission defaults
DEFAULT_SELLER_COMMISSION_PERCENT: float = float(os.getenv("DEFAULT_SELLER_COMMISSION_PERCENT", 10))
DEFAULT_SDR_COMMISSION_PERCENT: float = float(os.getenv("DEFAULT_SDR_COMMISSION_PERCENT", 1))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

if "change_me" in SECRET_KEY:
    # Never log the key itself.
    logger.warning("SECRET_KEY is not configured or is using a placeholder value.")
