from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

# Project root directory
ROOT_DIR = Path(__file__).parent.parent


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "HealthRecordsReportService"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Path = ROOT_DIR / "logs"

    # API settings
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "*"

    # Database settings
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DB: str = "health_records"

    # Diagnostic center service
    DC_API_BASE_URL: str = "https://diagnostic.omerald.com"

    # File signing service
    SIGNED_URL_ENDPOINT: str = "http://localhost:3000/api/upload/getSignedUrl"
    SIGNED_URL_EXPIRES_IN: int = 3600

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Report viewer behaviour
    EMBEDDED_VIEWER_ENABLED: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True


# Create settings instance
settings = Settings()
