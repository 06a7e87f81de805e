"""
Modèle SQLAlchemy du registre de présences (append-only).

- record_id : index dans la séquence, attribué par le registre (pas d'auto-incrément)
- Les empreintes sont stockées sous forme hexadécimale "0x..." (66 caractères)
- Aucune ligne n'est jamais modifiée ni supprimée
"""

from sqlalchemy import BigInteger, Boolean, Column, Integer, String, Text

from attendance_ledger.database import Base


class AttendanceRecordRow(Base):
    """Ligne du registre: une présence ou une absence acceptée."""
    __tablename__ = "attendance_records"

    record_id = Column(Integer, primary_key=True, autoincrement=False)

    id_hash = Column(String(66), nullable=False)
    name_hash = Column(String(66), nullable=False)

    timestamp = Column(BigInteger, nullable=False)          # Attribué par le registre
    is_present = Column(Boolean, nullable=False)
    reason = Column(Text, nullable=False, default="")        # Vide si présent
    document_hash = Column(String(66), nullable=False)       # EMPTY_DIGEST si aucun justificatif

    recorder = Column(String(128), nullable=False)           # Identité de l'appelant
