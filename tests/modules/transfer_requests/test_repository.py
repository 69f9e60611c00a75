"""
Tests for the transfer requests repository layer.

Covers the status state machine and the database queries.
"""

from uuid import uuid4

import pytest

from app.modules.transfer_requests import repository
from app.modules.transfer_requests.models import TransferRequestStatus
from app.modules.transfer_requests.repository import (
    VALID_STATUS_TRANSITIONS,
    InvalidStatusTransitionError,
)


async def create_request(db, *, reference, origin="Escola Técnica de Gaza", requested_by="3"):
    return await repository.create(
        db,
        reference=reference,
        origin_school=origin,
        destination_school="Instituto Técnico Moçambicano",
        requester_name="Maria Silva",
        class_name="11B",
        grade="11",
        national_id="987654321",
        reason="Mudança de residência",
        requested_by=requested_by,
    )


class TestStatusTransitions:
    """Tests for status transition state machine."""

    def test_pending_can_be_decided(self):
        valid = VALID_STATUS_TRANSITIONS[TransferRequestStatus.PENDING]
        assert TransferRequestStatus.APPROVED in valid
        assert TransferRequestStatus.REJECTED in valid
        assert TransferRequestStatus.PENDING not in valid

    def test_terminal_states_have_no_transitions(self):
        """Terminal states should have no valid transitions."""
        assert VALID_STATUS_TRANSITIONS[TransferRequestStatus.APPROVED] == set()
        assert VALID_STATUS_TRANSITIONS[TransferRequestStatus.REJECTED] == set()

    def test_all_statuses_are_in_transition_map(self):
        for status in TransferRequestStatus:
            assert status in VALID_STATUS_TRANSITIONS


class TestInvalidStatusTransitionError:
    """Tests for InvalidStatusTransitionError."""

    def test_error_message_contains_both_statuses(self):
        error = InvalidStatusTransitionError(
            TransferRequestStatus.APPROVED, TransferRequestStatus.REJECTED
        )
        assert "approved" in str(error)
        assert "rejected" in str(error)
        assert error.current_status == TransferRequestStatus.APPROVED
        assert error.new_status == TransferRequestStatus.REJECTED

    def test_error_is_value_error(self):
        error = InvalidStatusTransitionError(
            TransferRequestStatus.REJECTED, TransferRequestStatus.APPROVED
        )
        assert isinstance(error, ValueError)


class TestRequestQueries:
    """Database-backed tests."""

    @pytest.mark.asyncio
    async def test_create_starts_pending(self, db_session):
        request = await create_request(db_session, reference="AAAA0001")

        assert request.status == TransferRequestStatus.PENDING
        assert request.decided_at is None
        assert request.request_date is not None
        assert await repository.reference_exists(db_session, "AAAA0001")
        assert not await repository.reference_exists(db_session, "BBBB0001")

    @pytest.mark.asyncio
    async def test_list_by_requester(self, db_session):
        await create_request(db_session, reference="AAAA0001", requested_by="3")
        await create_request(db_session, reference="AAAA0002", requested_by="4")

        requests = await repository.list_by_requester(db_session, "3")

        assert [r.reference for r in requests] == ["AAAA0001"]

    @pytest.mark.asyncio
    async def test_list_by_origin_school_with_status(self, db_session):
        first = await create_request(db_session, reference="AAAA0001")
        await create_request(db_session, reference="AAAA0002")
        await create_request(db_session, reference="AAAA0003", origin="Outra Escola")
        await repository.update_status(db_session, first.id, TransferRequestStatus.APPROVED)

        everything = await repository.list_by_origin_school(db_session, "Escola Técnica de Gaza")
        pending = await repository.list_by_origin_school(
            db_session, "Escola Técnica de Gaza", status=TransferRequestStatus.PENDING
        )

        assert len(everything) == 2
        assert [r.reference for r in pending] == ["AAAA0002"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "search,expected",
        [
            ("aaaa0002", ["AAAA0002"]),
            ("TÉCNICO", ["AAAA0001", "AAAA0002"]),
            ("residência", ["AAAA0001", "AAAA0002"]),
            ("maria", ["AAAA0001", "AAAA0002"]),
            ("Dom Bosco", []),
        ],
    )
    async def test_list_with_search(self, db_session, search, expected):
        await create_request(db_session, reference="AAAA0001")
        await create_request(db_session, reference="AAAA0002")

        by_school = await repository.list_by_origin_school(
            db_session, "Escola Técnica de Gaza", search=search
        )
        by_requester = await repository.list_by_requester(db_session, "3", search=search)

        assert sorted(r.reference for r in by_school) == expected
        assert sorted(r.reference for r in by_requester) == expected

    @pytest.mark.asyncio
    async def test_update_status_records_decision(self, db_session):
        request = await create_request(db_session, reference="AAAA0001")

        updated = await repository.update_status(
            db_session,
            request.id,
            TransferRequestStatus.REJECTED,
            decided_by="1",
            decision_reason="Vagas esgotadas",
        )

        assert updated.status == TransferRequestStatus.REJECTED
        assert updated.decided_by == "1"
        assert updated.decided_at is not None
        assert updated.decision_reason == "Vagas esgotadas"

    @pytest.mark.asyncio
    async def test_update_status_rejects_second_decision(self, db_session):
        request = await create_request(db_session, reference="AAAA0001")
        await repository.update_status(db_session, request.id, TransferRequestStatus.APPROVED)

        with pytest.raises(InvalidStatusTransitionError):
            await repository.update_status(db_session, request.id, TransferRequestStatus.REJECTED)

    @pytest.mark.asyncio
    async def test_update_status_unknown_request(self, db_session):
        with pytest.raises(ValueError, match="not found"):
            await repository.update_status(db_session, uuid4(), TransferRequestStatus.APPROVED)
