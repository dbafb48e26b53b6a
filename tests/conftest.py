"""
This module contains pytest fixtures and configuration for testing.
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add the project's root directory to the system path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

# Import the main app
from main import app
from api.auth.dependencies import get_current_user
from api.auth.schemas import AuthenticatedUser


@pytest.fixture
def test_app():
    """
    Create a FastAPI test application.
    """
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """
    Create a test client for the FastAPI application.
    The lifespan is not started, so Firebase is never initialized.
    """
    return TestClient(test_app)


@pytest.fixture
def seller_client(test_app, client):
    """
    Test client authenticated as seller "seller123".
    """
    test_app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(id="seller123", role="seller")
    return client


@pytest.fixture
def mock_firestore():
    """
    Create a mock for the Firestore client.
    """
    with patch('firebase_admin.firestore.client') as mock:
        firestore_mock = MagicMock()
        mock.return_value = firestore_mock
        yield firestore_mock


@pytest.fixture
def mock_auth():
    """
    Create a mock for Firebase Auth.
    """
    with patch('firebase_admin.auth') as mock:
        yield mock


def make_doc(doc_id, data, exists=True):
    """Build a mocked Firestore document snapshot."""
    doc = MagicMock()
    doc.id = doc_id
    doc.exists = exists
    doc.to_dict.return_value = data
    return doc


def make_sale(sale_id="sale1", seller_id="seller123", sale_date=None, total=0, items=None, **fields):
    """Build a raw sale document as stored in Firestore."""
    sale = {
        "id": sale_id,
        "sellerId": seller_id,
        "customerName": "Cliente",
        "paymentMethod": "efectivo",
        "total": total,
        "items": items if items is not None else [],
        "saleDate": sale_date,
        "createdAt": datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
    }
    sale.update(fields)
    return sale
