# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, List, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    # Sanity (product catalog, customers, orders)
    SANITY_PROJECT_ID: str
    SANITY_DATASET: str = "production"
    SANITY_API_VERSION: str = "2024-11-20"
    SANITY_API_TOKEN: Optional[str] = None

    # Stripe checkout
    STRIPE_SECRET_KEY: str
    STRIPE_API_VERSION: str = "2024-11-20.acacia"
    CHECKOUT_CURRENCY: str = "inr"

    # Clerk authentication
    CLERK_JWT_KEY: str
    CLERK_SECRET_KEY: str
    CLERK_API_URL: str = "https://api.clerk.com"
    CLERK_AUTHORIZED_PARTIES: str = ""

    # Public storefront URL used for Stripe redirects
    BASE_URL: Optional[str] = None
    VERCEL_URL: Optional[str] = None
    FRONTEND_URL: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)

    @property
    def storefront_url(self) -> str:
        if self.BASE_URL:
            return self.BASE_URL.rstrip("/")
        if self.VERCEL_URL:
            return f"https://{self.VERCEL_URL}"
        return "http://localhost:3000"

    @property
    def authorized_parties(self) -> List[str]:
        return [p.strip() for p in self.CLERK_AUTHORIZED_PARTIES.split(",") if p.strip()]

settings = Settings()
