import logging
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./commission_engine.db")
SQLALCHEMY_DATABASE_URI = DATABASE_URL

# JWT Settings. Tokens are issued by the surrounding product; the engine only reads the org claim.
SECRET_KEY: str = os.getenv("SECRET_KEY", "a_very_secret_key_that_should_be_in_env_file_and_much_stronger")
ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO: bool = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

# Length of a recurring billing window when the caller does not send period_start/period_end
DEFAULT_PERIOD_DAYS: int = int(os.getenv("DEFAULT_PERIOD_DAYS", 30))

if "a_very_secret_key" in SECRET_KEY:
    # Avoid logging the key itself.
    logging.getLogger(__name__).warning("SECRET_KEY is not configured or is using a placeholder value.")

# Bind address for `python -m commission_engine.main` / the commission-engine script
HOST: str = os.getenv("HOST", "127.0.0.1")
PORT: int = int(os.getenv("PORT", 8000))
