"""
Fixtures for transfer requests tests.
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.modules.transfer_requests.models import TransferRequest, TransferRequestStatus
from app.modules.transfer_requests.schemas import TransferRequestCreate


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def transfer_create():
    """A request from Gaza to a Maputo school."""
    return TransferRequestCreate(
        destination_school="Instituto Técnico Moçambicano",
        reason="Mudança de residência da família",
    )


@pytest.fixture
def pending_request_model(student):
    """A pending request as loaded from the database."""
    return TransferRequest(
        id=uuid4(),
        reference="REQ12345",
        origin_school=student.school,
        destination_school="Instituto Técnico Moçambicano",
        requester_name=student.name,
        class_name=student.class_name,
        grade=student.grade,
        national_id=student.national_id,
        reason="Mudança de residência da família",
        request_date=date(2024, 3, 1),
        status=TransferRequestStatus.PENDING,
        requested_by=student.id,
    )
