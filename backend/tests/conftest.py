"""
Configuration partagée pour tous les tests.
Chaque test reçoit un registre neuf en mémoire, injecté à la place de get_ledger.
"""

import pytest
from fastapi.testclient import TestClient

from attendance_ledger.dependencies import get_ledger
from attendance_ledger.main import app
from attendance_ledger.services.ledger_service import AttendanceLedger


@pytest.fixture
def ledger():
    """Registre vide, indépendant des autres tests."""
    return AttendanceLedger()


@pytest.fixture
def client(ledger):
    """Client HTTP de test branché sur le registre en mémoire du test."""
    app.dependency_overrides[get_ledger] = lambda: ledger
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
