"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str

    # Gemini API
    GEMINI_API_KEY: str
    CHAT_MODEL: str = "gemini-3-flash-preview"
    CHAT_SYSTEM_INSTRUCTION: str = (
        "أنت مساعد ذكي لطلاب منصة تعليمية. أجب باللغة العربية بأسلوب احترافي، "
        "دقيق، ومبسط. ساعد الطلاب في فهم المواد العلمية."
    )
    CHAT_HISTORY_LIMIT: int = 40  # messages replayed into a chat session

    # Firebase Auth
    FIREBASE_SERVICE_ACCOUNT_PATH: str = ""
    FIREBASE_SERVICE_ACCOUNT_JSON: str = ""
    ADMIN_EMAILS: List[str] = []

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Application
    APP_NAME: str = "Nokhba Academy Portal"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000
    REDEEM_LIMIT_PER_MINUTE: int = 5

    # Academy
    ACADEMY_NAME: str = "أكاديمية النخبة"
    GRADES: List[str] = [
        "الصف الأول الثانوي",
        "الصف الثاني الثانوي",
        "الصف الثالث الثانوي",
    ]
    STUDY_TYPES: List[str] = ["سنتر", "اونلاين"]
    RECHARGE_CODE_VALUES: List[int] = [50, 100, 200, 500]

    # Quiz Settings
    LESSON_CACHE_TTL: int = 300  # 5 minutes
    QUIZ_AUTO_SUBMIT: bool = True
    MAX_QUIZ_DURATION_MINUTES: int = 180

    # Guardian alerts
    GUARDIAN_COUNTRY_PREFIX: str = "2"
    WHATSAPP_BASE_URL: str = "https://wa.me"

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
