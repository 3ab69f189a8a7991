from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./textile_pos.db"
    LOG_LEVEL: str = "INFO"

    # CORS origins for the back-office frontend
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # Where terminal ledgers and held bills live: "sql" or "memory"
    STORAGE_BACKEND: str = "sql"
    # Invoice numbering: "sql" (atomic counter row) or "kv" (local counter)
    SEQUENCE_BACKEND: str = "sql"

    SALE_PREFIX: str = "TGT"
    PURCHASE_PREFIX: str = "PUR"
    RETURN_PREFIX: str = "RET"

    # Shop defaults, overridable at runtime through /settings
    SHOP_NAME: str = "T.Gopi Textiles"
    GST_NUMBER: str = "YOUR_GST_NUMBER_HERE"
    BILL_MESSAGE: str = "Thank You For Your Purchasing"
    DEFAULT_GST: Decimal = Decimal("5")

    # Barcode stickers
    LABEL_SYMBOLOGY: str = "code128"
    LABEL_NAME_MAX: int = 24
    LABEL_MAX_BATCH: int = 1000


settings = Settings()
