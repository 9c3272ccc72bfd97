from pydantic_settings import BaseSettings

from dotenv import load_dotenv

load_dotenv()  # load .env file

class Settings(BaseSettings):
    SUPABASE_URL: str
    SUPABASE_SERVICE_KEY: str
    SESSION_TTL_SECONDS: int = 3600
    LOG_LEVEL: str = "INFO"
    INVITE_CODE_LENGTH: int = 6
    # Whether "late" marks count toward attendance rates
    ATTENDANCE_LATE_COUNTS_AS_PRESENT: bool = False

    class Config:
        env_file = ".env"

settings = Settings()
