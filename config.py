import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Runtime configuration, read from the environment (and .env)."""

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL") or os.getenv("MONGO_URI")
    DATABASE_NAME = os.getenv("DATABASE_NAME", "shop")

    # Server
    PORT = int(os.getenv("PORT", 8000))
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
    LOG_LEVEL = os.getenv("LOG_LEVEL")
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    # Credentials
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 10))


settings = Settings()
