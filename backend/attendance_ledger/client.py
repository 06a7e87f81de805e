"""
Client Python de l'API du registre de présences.

Flux d'envoi :
1. Hachage du matricule et du nom en clair (digest_text)
2. Hachage du justificatif brut si la personne est absente (digest_bytes), sinon empreinte nulle
3. POST /api/v1/records avec l'identité de l'appelant dans l'en-tête X-Caller

La correspondance empreinte → donnée en clair reste chez l'appelant : rien n'est mis en cache ici.
Les refus du registre (400, 404, 409) sont relevés sous leur classe d'erreur métier, message inchangé.
"""

import logging
import math
from typing import Any, Iterator, List, Optional

import requests

from attendance_ledger.config import settings
from attendance_ledger.digests import EMPTY_DIGEST, digest_bytes, digest_text
from attendance_ledger.exceptions import LEDGER_MESSAGES, LedgerClientError, error_from_message
from attendance_ledger.schemas.record import AttendanceRecord, RecordPage

logger = logging.getLogger(__name__)


class LedgerClient:
    """
    Accès HTTP au registre. `session` accepte tout objet exposant get/post
    à la manière de requests.Session (ex. fastapi.testclient.TestClient).
    """

    def __init__(
        self,
        base_url: str,
        caller: str,
        session: Optional[Any] = None,
        page_size: Optional[int] = None,
        timeout: float = 10,
    ):
        if not caller.strip():
            raise ValueError("Caller identity cannot be empty.")
        page_size = page_size if page_size is not None else settings.PAGE_SIZE
        if page_size <= 0:
            raise ValueError("Page size must be positive.")

        self.base_url = base_url.rstrip("/")
        self.caller = caller
        self.page_size = page_size
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()

    @property
    def _records_url(self) -> str:
        return f"{self.base_url}/api/v1/records"

    def _check(self, response) -> Any:
        """Retourne le JSON d'une réponse 2xx, sinon lève l'erreur correspondante."""
        if 200 <= response.status_code < 300:
            return response.json()

        try:
            detail = response.json().get("detail", "")
        except ValueError:
            detail = response.text
        if response.status_code in (400, 404, 409) and isinstance(detail, str) and detail in LEDGER_MESSAGES:
            raise error_from_message(detail)
        raise LedgerClientError(response.status_code, str(detail))

    # --- Écriture ---

    def log_attendance(
        self,
        id_hash: str,
        name_hash: str,
        is_present: bool,
        reason: str = "",
        document_hash: str = EMPTY_DIGEST,
    ) -> AttendanceRecord:
        payload = {
            "id_hash": id_hash,
            "name_hash": name_hash,
            "is_present": is_present,
            "reason": reason,
            "document_hash": document_hash,
        }
        response = self._session.post(
            self._records_url,
            json=payload,
            headers={"X-Caller": self.caller},
            timeout=self.timeout,
        )
        record = AttendanceRecord.model_validate(self._check(response))
        logger.info("Présence envoyée : #%d par %s", record.record_id, self.caller)
        return record

    def submit_attendance(
        self,
        person_id: str,
        name: str,
        is_present: bool,
        reason: str = "",
        document: Optional[bytes] = None,
    ) -> AttendanceRecord:
        """Hache les données en clair puis envoie l'enregistrement."""
        document_hash = EMPTY_DIGEST
        if not is_present and document:
            document_hash = digest_bytes(document)

        return self.log_attendance(
            digest_text(person_id.strip()),
            digest_text(name.strip()),
            is_present,
            reason.strip() if not is_present else reason,
            document_hash,
        )

    # --- Lectures ---

    def get_total_records(self) -> int:
        response = self._session.get(f"{self._records_url}/count", timeout=self.timeout)
        return int(self._check(response)["total_records"])

    def get_record(self, record_id: int) -> AttendanceRecord:
        response = self._session.get(f"{self._records_url}/{record_id}", timeout=self.timeout)
        return AttendanceRecord.model_validate(self._check(response))

    def get_batch(self, start: int, count: int) -> List[AttendanceRecord]:
        response = self._session.get(
            self._records_url,
            params={"start": start, "count": count},
            timeout=self.timeout,
        )
        return [AttendanceRecord.model_validate(r) for r in self._check(response)]

    def get_page(self, page: int) -> RecordPage:
        """
        Page `page` (depuis 0) de taille fixe.
        Registre vide : page vide sans requête de lot, total_pages = 0.
        """
        if page < 0:
            raise ValueError("Page number must not be negative.")

        total = self.get_total_records()
        total_pages = math.ceil(total / self.page_size)
        records: List[AttendanceRecord] = []
        if total > 0:
            records = self.get_batch(page * self.page_size, self.page_size)

        return RecordPage(
            page=page,
            page_size=self.page_size,
            total_records=total,
            total_pages=total_pages,
            records=records,
        )

    def iter_records(self, batch_size: Optional[int] = None) -> Iterator[AttendanceRecord]:
        """Parcourt tout le registre par lots adjacents, dans l'ordre des record_id."""
        batch_size = batch_size or self.page_size
        total = self.get_total_records()
        start = 0
        while start < total:
            batch = self.get_batch(start, batch_size)
            if not batch:
                break
            yield from batch
            start += len(batch)
