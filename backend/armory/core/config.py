from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Server
    PORT: int = 8080
    APP_ENV: str = "development"
    APP_BASE_URL: str = "http://localhost:8080"
    SITE_NAME: str = "The Virtual Armory"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./armory.db"

    # Session
    COOKIE_SECRET: str = "dev-cookie-secret-change-me"
    SESSION_NAME: str = "armory_session"
    SESSION_MAX_AGE_SECONDS: int = 3600
    FLASH_MAX_AGE_SECONDS: int = 5

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_PUBLISHABLE_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_PRICE_MONTHLY: str = ""
    STRIPE_PRICE_YEARLY: str = ""
    STRIPE_PRICE_LIFETIME: str = ""
    STRIPE_PRICE_PREMIUM_LIFETIME: str = ""
    PROCESSOR_TIMEOUT_SECONDS: int = 10

    # Resend
    RESEND_API_KEY: str = ""
    MAIL_FROM: str = "noreply@virtualarmory.example.com"
    MAIL_TIMEOUT_SECONDS: int = 10

    @property
    def is_test(self) -> bool:
        return self.APP_ENV == "test"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def processor_enabled(self) -> bool:
        """Real Stripe calls only outside test mode and with a secret key"""
        return bool(self.STRIPE_SECRET_KEY) and not self.is_test

    @property
    def mail_enabled(self) -> bool:
        return bool(self.RESEND_API_KEY) and not self.is_test

    def price_id_for(self, tier: str) -> Optional[str]:
        price_ids = {
            "monthly": self.STRIPE_PRICE_MONTHLY,
            "yearly": self.STRIPE_PRICE_YEARLY,
            "lifetime": self.STRIPE_PRICE_LIFETIME,
            "premium_lifetime": self.STRIPE_PRICE_PREMIUM_LIFETIME,
        }
        return price_ids.get(tier) or None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
