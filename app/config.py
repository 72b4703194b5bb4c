import os  # lets us read environment variables (from the OS)
from functools import (
    lru_cache,  # tiny built-in cache; we use it to reuse one Settings object
)

from dotenv import load_dotenv  # loads variables from a local .env file
from pydantic import BaseModel  # Pydantic gives us a typed, validated settings class

load_dotenv()  # read .env and put those key=value pairs into environment variables


class Settings(BaseModel):  # our typed container for config values
    # signs every bearer token; rotating it logs everybody out
    secret_key: str = os.getenv("SECRET_KEY", "dev-secret-change")

    # database connection string; default is a SQLite file in the project folder
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./app.db")

    # token and invite lifetimes, in days
    access_token_expire_days: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))
    invite_expire_days: int = int(os.getenv("INVITE_EXPIRE_DAYS", "7"))

    # the single browser origin allowed by CORS
    frontend_origin: str = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")

    # Google ID tokens must carry this client id as their audience
    google_client_id: str = os.getenv("GOOGLE_CLIENT_ID", "")

    # image host credentials (profile pictures)
    cloudinary_cloud_name: str = os.getenv("CLOUDINARY_CLOUD_NAME", "")
    cloudinary_api_key: str = os.getenv("CLOUDINARY_API_KEY", "")
    cloudinary_api_secret: str = os.getenv("CLOUDINARY_API_SECRET", "")
    cloudinary_folder: str = os.getenv("CLOUDINARY_FOLDER", "finance-tracker")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")


@lru_cache  # make sure Settings() is created once and reused (fast + consistent)
def get_settings() -> Settings:
    return Settings()  # build from env (already loaded by load_dotenv())
