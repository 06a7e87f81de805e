"""
Configuration de la connexion à la base de données du registre.
Utilisée uniquement par le stockage SQL (LEDGER_BACKEND=sql).
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from attendance_ledger.config import settings


def make_engine(url: str, **kwargs):
    """Crée un moteur SQLAlchemy ; SQLite doit accepter les threads du pool FastAPI."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, **kwargs)


# Aucune connexion n'est ouverte tant que le stockage SQL n'est pas utilisé
engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()
