"""
Tests d'intégration API du registre de présences.
Testent POST /api/v1/records
      GET  /api/v1/records?start=&count=
      GET  /api/v1/records/count
      GET  /api/v1/records/{record_id}
"""

import logging
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from attendance_ledger.dependencies import get_ledger
from attendance_ledger.digests import EMPTY_DIGEST, digest_bytes, digest_text
from attendance_ledger.exceptions import AppendConflict
from attendance_ledger.main import app


CALLER = {"X-Caller": "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"}


# --- Helpers ---

def make_payload(**kwargs) -> dict:
    return {
        "id_hash": kwargs.get("id_hash", digest_text("123456789")),
        "name_hash": kwargs.get("name_hash", digest_text("Budi Santoso")),
        "is_present": kwargs.get("is_present", True),
        "reason": kwargs.get("reason", ""),
        "document_hash": kwargs.get("document_hash", EMPTY_DIGEST),
    }


def fill(client, n):
    for i in range(n):
        response = client.post(
            "/api/v1/records",
            json=make_payload(
                id_hash=digest_text(f"ID{i}"),
                is_present=i % 2 == 0,
                reason="" if i % 2 == 0 else f"Reason {i}",
            ),
            headers=CALLER,
        )
        assert response.status_code == 201


# ============================================================
# POST /api/v1/records
# ============================================================

def test_log_present_succes(client):
    """Présent valide → 201 avec l'enregistrement créé."""
    response = client.post("/api/v1/records", json=make_payload(), headers=CALLER)

    assert response.status_code == 201
    data = response.json()
    assert data["record_id"] == 0
    assert data["id_hash"] == digest_text("123456789")
    assert data["is_present"] is True
    assert data["reason"] == ""
    assert data["document_hash"] == EMPTY_DIGEST
    assert data["recorder"] == CALLER["X-Caller"]
    assert isinstance(data["timestamp"], int)


def test_log_absent_avec_justificatif(client):
    """Absent avec motif et justificatif → 201, empreinte conservée."""
    document_hash = digest_bytes(b"%PDF-1.4")
    response = client.post(
        "/api/v1/records",
        json=make_payload(is_present=False, reason="Sakit", document_hash=document_hash),
        headers=CALLER,
    )

    assert response.status_code == 201
    assert response.json()["document_hash"] == document_hash


def test_log_valeur_par_defaut(client):
    """reason et document_hash sont optionnels dans le payload."""
    payload = {
        "id_hash": digest_text("1"),
        "name_hash": digest_text("A"),
        "is_present": True,
    }
    response = client.post("/api/v1/records", json=payload, headers=CALLER)
    assert response.status_code == 201
    assert response.json()["document_hash"] == EMPTY_DIGEST


def test_log_present_avec_motif(client, ledger):
    """Présent avec motif → 400 avec le message métier exact, registre inchangé."""
    response = client.post(
        "/api/v1/records", json=make_payload(reason="Terlambat"), headers=CALLER
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Reason must be empty when present"
    assert ledger.get_total_records() == 0


def test_log_present_avec_justificatif(client):
    response = client.post(
        "/api/v1/records",
        json=make_payload(document_hash=digest_text("fake_document")),
        headers=CALLER,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Document hash must be empty when present"


def test_log_absent_sans_motif(client):
    response = client.post(
        "/api/v1/records", json=make_payload(is_present=False, reason=""), headers=CALLER
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Reason is required when absent"


def test_log_sans_en_tete_caller(client, ledger):
    """X-Caller absent → 422, rien n'est enregistré."""
    response = client.post("/api/v1/records", json=make_payload())
    assert response.status_code == 422
    assert ledger.get_total_records() == 0


def test_log_en_tete_caller_vide(client):
    response = client.post("/api/v1/records", json=make_payload(), headers={"X-Caller": "   "})
    assert response.status_code == 422


def test_log_empreinte_malformee(client):
    """id_hash qui n'est pas 0x + 64 hex → 422."""
    response = client.post(
        "/api/v1/records", json=make_payload(id_hash="123456789"), headers=CALLER
    )
    assert response.status_code == 422


def test_log_recorder_ne_vient_pas_du_payload(client):
    """Un champ recorder dans le payload est ignoré : seul X-Caller compte."""
    payload = make_payload()
    payload["recorder"] = "0xspoofed"
    response = client.post("/api/v1/records", json=payload, headers=CALLER)

    assert response.status_code == 201
    assert response.json()["recorder"] == CALLER["X-Caller"]


# ============================================================
# GET /api/v1/records/count
# ============================================================

def test_total_vide(client):
    response = client.get("/api/v1/records/count")
    assert response.status_code == 200
    assert response.json() == {"total_records": 0}


def test_total_apres_ajouts(client):
    fill(client, 3)
    assert client.get("/api/v1/records/count").json()["total_records"] == 3


# ============================================================
# GET /api/v1/records
# ============================================================

def test_batch_succes(client):
    fill(client, 5)
    response = client.get("/api/v1/records", params={"start": 2, "count": 2})

    assert response.status_code == 200
    assert [r["record_id"] for r in response.json()] == [2, 3]


def test_batch_tronque(client):
    fill(client, 5)
    response = client.get("/api/v1/records", params={"start": 3, "count": 10})
    assert [r["record_id"] for r in response.json()] == [3, 4]


def test_batch_par_defaut(client):
    """Sans paramètre : start=0, count=10."""
    fill(client, 12)
    response = client.get("/api/v1/records")
    assert [r["record_id"] for r in response.json()] == list(range(10))


def test_batch_hors_limites(client):
    """start au-delà du total → 404 « Start index out of bounds »."""
    fill(client, 5)
    response = client.get("/api/v1/records", params={"start": 10, "count": 5})

    assert response.status_code == 404
    assert response.json()["detail"] == "Start index out of bounds"


def test_batch_registre_vide(client):
    response = client.get("/api/v1/records", params={"start": 0, "count": 10})
    assert response.status_code == 200
    assert response.json() == []


def test_batch_parametre_negatif(client):
    response = client.get("/api/v1/records", params={"start": -1, "count": 10})
    assert response.status_code == 422


# ============================================================
# GET /api/v1/records/{record_id}
# ============================================================

def test_get_record_succes(client):
    fill(client, 2)
    response = client.get("/api/v1/records/1")

    assert response.status_code == 200
    data = response.json()
    assert data["record_id"] == 1
    assert data["is_present"] is False
    assert data["reason"] == "Reason 1"


def test_get_record_introuvable(client):
    response = client.get("/api/v1/records/0")
    assert response.status_code == 404
    assert response.json()["detail"] == "Record does not exist"


# ============================================================
# Application
# ============================================================

def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_ajout_journalise_par_l_abonne(client, caplog):
    """Le démarrage de l'API abonne le journal aux notifications du registre."""
    caplog.set_level(logging.INFO, logger="attendance_ledger")
    client.post("/api/v1/records", json=make_payload(), headers=CALLER)

    assert any("AttendanceLogged record_id=0" in m for m in caplog.messages)


def test_erreur_interne_500():
    """Exception non prévue → 500 générique, sans détail interne."""
    broken = MagicMock()
    broken.get_total_records.side_effect = RuntimeError("disque plein")
    app.dependency_overrides[get_ledger] = lambda: broken
    try:
        with TestClient(app, raise_server_exceptions=False) as c:
            response = c.get("/api/v1/records/count")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"detail": "An internal error occurred."}


def test_log_conflit_entre_processus_409():
    """record_id déjà pris par un autre processus → 409 avec le message stable, ajout à renvoyer."""
    conflicting = MagicMock()
    conflicting.log_attendance.side_effect = AppendConflict()
    app.dependency_overrides[get_ledger] = lambda: conflicting
    try:
        with TestClient(app) as c:
            response = c.post("/api/v1/records", json=make_payload(), headers=CALLER)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 409
    assert response.json()["detail"] == "Record id already taken, retry the append"
    conflicting.get_record.assert_not_called()
