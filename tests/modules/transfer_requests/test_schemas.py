"""
Unit tests for transfer request schemas.
"""

import pytest
from pydantic import ValidationError

from app.modules.transfer_requests.schemas import SYSTEM_SCHOOLS, TransferRequestCreate


class TestTransferRequestCreate:
    """Tests for destination and reason validation."""

    def test_destination_resolved_to_registered_name(self):
        data = TransferRequestCreate(destination_school="  colégio dom bosco ", reason="Mudança")

        assert data.destination_school == "Colégio Dom Bosco"

    def test_unknown_destination_rejected(self):
        with pytest.raises(ValidationError, match="Unknown school"):
            TransferRequestCreate(destination_school="Escola Secundaria Machell", reason="x")

    def test_blank_reason_rejected(self):
        with pytest.raises(ValidationError):
            TransferRequestCreate(destination_school="Escola Industrial", reason="   ")

    def test_every_registered_school_is_accepted(self):
        for school in SYSTEM_SCHOOLS:
            data = TransferRequestCreate(destination_school=school, reason="x")
            assert data.destination_school == school
