"""
Router du registre de présences.
Ajout (append-only), lecture unitaire, lecture par lot et total des enregistrements.
Aucune modification ni suppression n'est exposée.
"""

from typing import List

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from attendance_ledger.dependencies import get_ledger
from attendance_ledger.exceptions import AppendConflict, LedgerError, OutOfRange
from attendance_ledger.schemas.record import (
    AttendanceCreate,
    AttendanceRecord,
    CallContext,
    TotalRecordsResponse,
)
from attendance_ledger.services.ledger_service import AttendanceLedger

router = APIRouter(prefix="/api/v1/records", tags=["Registre"])


@router.post("", response_model=AttendanceRecord, status_code=201, summary="Enregistrer une présence")
def log_attendance(
    data: AttendanceCreate,
    x_caller: str = Header(..., min_length=1),
    ledger: AttendanceLedger = Depends(get_ledger),
):
    """
    Ajoute une présence ou une absence à la fin du registre.

    - Présent : reason vide et document_hash = empreinte nulle
    - Absent  : reason obligatoire, document_hash optionnel
    - L'enregistreur est l'en-tête X-Caller, l'horodatage est attribué par le serveur

    Retourne 400 avec le message métier exact si une règle est violée,
    409 si un autre processus a pris le même record_id (l'ajout peut être renvoyé).
    """
    if not x_caller.strip():
        raise HTTPException(status_code=422, detail="X-Caller header cannot be empty.")
    context = CallContext.now(x_caller)
    try:
        record_id = ledger.log_attendance(
            data.id_hash,
            data.name_hash,
            data.is_present,
            data.reason,
            data.document_hash,
            context=context,
        )
    except AppendConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    except LedgerError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ledger.get_record(record_id)


@router.get("/count", response_model=TotalRecordsResponse, summary="Nombre total d'enregistrements")
def get_total_records(ledger: AttendanceLedger = Depends(get_ledger)):
    """Sert au calcul du nombre de pages côté client : ceil(total / taille de page)."""
    return TotalRecordsResponse(total_records=ledger.get_total_records())


@router.get("", response_model=List[AttendanceRecord], summary="Lire un lot d'enregistrements")
def get_batch(
    start: int = Query(0, ge=0),
    count: int = Query(10, ge=0),
    ledger: AttendanceLedger = Depends(get_ledger),
):
    """
    Retourne les enregistrements [start, start + count) triés par record_id.
    Le lot est tronqué en fin de registre. Registre vide → liste vide.
    Retourne 404 si start dépasse le nombre d'enregistrements.
    """
    try:
        return ledger.get_batch(start, count)
    except OutOfRange as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{record_id}", response_model=AttendanceRecord, summary="Lire un enregistrement")
def get_record(record_id: int, ledger: AttendanceLedger = Depends(get_ledger)):
    """Retourne l'enregistrement tel qu'il a été accepté, ou 404 s'il n'existe pas."""
    try:
        return ledger.get_record(record_id)
    except OutOfRange as e:
        raise HTTPException(status_code=404, detail=str(e))
