"""
Erreurs métier du registre de présences.

Les messages sont des textes stables destinés à l'utilisateur final :
le client HTTP les reçoit tels quels dans `detail` et les relève sans traduction.
"""

from typing import Dict, Type


class LedgerError(ValueError):
    """Base des erreurs du registre. Aucune ne modifie l'état du registre."""

    message = "Ledger error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.message)


class InvalidReason(LedgerError):
    """Motif fourni alors que la personne est présente."""

    message = "Reason must be empty when present"


class InvalidDocument(LedgerError):
    """Empreinte de justificatif fournie alors que la personne est présente."""

    message = "Document hash must be empty when present"


class MissingReason(LedgerError):
    """Motif absent alors que la personne est absente."""

    message = "Reason is required when absent"


class OutOfRange(LedgerError):
    """Identifiant ou index de début au-delà du nombre d'enregistrements."""

    message = "Record does not exist"


BATCH_OUT_OF_RANGE = "Start index out of bounds"


class AppendConflict(LedgerError):
    """Le record_id attribué a déjà été écrit par un autre processus : rien n'est ajouté, réessayer."""

    message = "Record id already taken, retry the append"


class LedgerClientError(Exception):
    """Réponse HTTP inattendue reçue par le client du registre."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"HTTP {status_code} : {detail}")
        self.status_code = status_code
        self.detail = detail


_ERRORS_BY_MESSAGE: Dict[str, Type[LedgerError]] = {
    InvalidReason.message: InvalidReason,
    InvalidDocument.message: InvalidDocument,
    MissingReason.message: MissingReason,
    OutOfRange.message: OutOfRange,
    BATCH_OUT_OF_RANGE: OutOfRange,
    AppendConflict.message: AppendConflict,
}


LEDGER_MESSAGES = frozenset(_ERRORS_BY_MESSAGE)


def error_from_message(message: str) -> LedgerError:
    """Reconstruit l'erreur métier à partir du `detail` renvoyé par l'API."""
    error_class = _ERRORS_BY_MESSAGE.get(message, LedgerError)
    return error_class(message)
