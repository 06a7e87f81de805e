"""
Configuration centrale du registre de présences via variables d'environnement.
Charger depuis un fichier .env en développement.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Stockage du registre : "memory" (liste en mémoire) ou "sql" (table SQLAlchemy)
    LEDGER_BACKEND: str = "memory"

    # Base de données (utilisée seulement si LEDGER_BACKEND == "sql")
    DATABASE_URL: str = "sqlite:///./attendance_ledger.db"

    # Pagination côté client (10 enregistrements par page)
    PAGE_SIZE: int = 10

    # CORS : origines localhost autorisées en développement (interface web externe)
    CORS_ORIGIN_REGEX: str = r"https?://(localhost|127\.0\.0\.1)(:\d+)?"

    # Journalisation
    LOG_LEVEL: str = "INFO"

    # Environnement
    ENV: str = "development"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
