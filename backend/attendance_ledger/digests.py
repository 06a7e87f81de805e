"""
Empreintes de 32 octets (SHA-256) utilisées comme engagements opaques.

Format unique : "0x" suivi de 64 chiffres hexadécimaux en minuscules.
Le registre ne calcule jamais d'empreinte lui-même : seul le client hache
l'identifiant, le nom et le contenu du justificatif avant l'envoi.
"""

import hashlib
import re

DIGEST_SIZE = 32
EMPTY_DIGEST = "0x" + "00" * DIGEST_SIZE

_DIGEST_PATTERN = re.compile(r"^0x[0-9a-f]{64}$")


def normalize_digest(value: str) -> str:
    """Valide une empreinte hexadécimale et la renvoie en minuscules."""
    if not isinstance(value, str):
        raise ValueError("Digest must be a hex string.")
    candidate = value.strip().lower()
    if not _DIGEST_PATTERN.match(candidate):
        raise ValueError("Digest must be '0x' followed by 64 hexadecimal characters.")
    return candidate


def is_empty_digest(value: str) -> bool:
    return normalize_digest(value) == EMPTY_DIGEST


def digest_bytes(data: bytes) -> str:
    """Empreinte du contenu brut d'un document (ex. PDF justificatif)."""
    return "0x" + hashlib.sha256(data).hexdigest()


def digest_text(value: str) -> str:
    """Empreinte d'une donnée d'identité en clair (matricule, nom)."""
    return digest_bytes(value.encode("utf-8"))
