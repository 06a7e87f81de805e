"""
Schémas Pydantic du registre de présences.
Endpoints : /api/v1/records

Les empreintes (id_hash, name_hash, document_hash) sont des chaînes "0x" + 64 hex.
Un enregistrement est immuable une fois créé (modèle figé).
"""

import time
from typing import List

from pydantic import BaseModel, computed_field, field_validator

from attendance_ledger.digests import EMPTY_DIGEST, normalize_digest


class AttendanceCreate(BaseModel):
    """Données envoyées par le client pour enregistrer une présence ou une absence."""

    id_hash: str
    name_hash: str
    is_present: bool
    reason: str = ""                      # Obligatoire si absent, vide si présent
    document_hash: str = EMPTY_DIGEST     # Empreinte du justificatif, EMPTY_DIGEST si aucun

    @field_validator("id_hash", "name_hash", "document_hash")
    @classmethod
    def valid_digest(cls, v: str) -> str:
        return normalize_digest(v)


class AttendanceRecord(BaseModel):
    """Enregistrement du registre, tel qu'il a été accepté (jamais modifié ensuite)."""

    record_id: int
    id_hash: str
    name_hash: str
    timestamp: int                        # Secondes depuis l'epoch, attribuées par le registre
    is_present: bool
    reason: str
    document_hash: str
    recorder: str                         # Identité de l'appelant, jamais fournie par le payload

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("id_hash", "name_hash", "document_hash")
    @classmethod
    def valid_digest(cls, v: str) -> str:
        return normalize_digest(v)

    @field_validator("record_id", "timestamp")
    @classmethod
    def not_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Value must be an unsigned integer.")
        return v


class AttendanceLogged(AttendanceRecord):
    """Notification émise après chaque ajout accepté (tous les champs de l'enregistrement)."""


class CallContext(BaseModel):
    """
    Contexte d'exécution d'un ajout : identité de l'appelant et heure courante.
    Fourni par la couche HTTP (en-tête X-Caller + horloge), jamais par le payload.
    """

    caller: str
    timestamp: int

    model_config = {"frozen": True}

    @field_validator("caller")
    @classmethod
    def caller_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Caller identity cannot be empty.")
        return v.strip()

    @classmethod
    def now(cls, caller: str) -> "CallContext":
        return cls(caller=caller, timestamp=int(time.time()))


class TotalRecordsResponse(BaseModel):
    total_records: int


class RecordPage(BaseModel):
    """Page de lecture calculée côté client (taille fixe, pages numérotées depuis 0)."""

    page: int
    page_size: int
    total_records: int
    total_pages: int
    records: List[AttendanceRecord]

    @computed_field
    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages - 1
