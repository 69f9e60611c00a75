"""
Tests for the document record store, against an in-memory database.
"""

from datetime import date

import pytest

from app.modules.documents import repository
from app.modules.documents.integrity import document_digest
from app.modules.documents.models import AcademicTrack, IssuedDocument


def make_document(short_id: str, student, school: str = "Escola Técnica de Gaza") -> IssuedDocument:
    canonical = student.to_canonical()
    issue_date = date(2026, 10, 19)
    return IssuedDocument(
        short_id=short_id,
        student=canonical,
        issue_date=issue_date,
        origin_school=school,
        origin_city="Gaza",
        academic_track=AcademicTrack.SECONDARY,
        digest=document_digest(canonical, issue_date, short_id),
    )


class TestPutAndGet:
    """Tests for put/get/exists."""

    @pytest.mark.asyncio
    async def test_put_then_get(self, db_session, maria_silva):
        await repository.put(db_session, make_document("AB12CD34", maria_silva))

        stored = await repository.get(db_session, "AB12CD34")

        assert stored is not None
        assert stored.student["nomeCompleto"] == "Maria Silva"
        assert stored.qr_payload == f"AB12CD34|{stored.digest}"

    @pytest.mark.asyncio
    async def test_get_is_exact_match(self, db_session, maria_silva):
        await repository.put(db_session, make_document("AB12CD34", maria_silva))

        assert await repository.get(db_session, "ab12cd34") is None
        assert await repository.get(db_session, "AB12CD3") is None

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, db_session):
        assert await repository.get(db_session, "ZZZZZZZZ") is None

    @pytest.mark.asyncio
    async def test_exists(self, db_session, maria_silva):
        assert await repository.exists(db_session, "AB12CD34") is False
        await repository.put(db_session, make_document("AB12CD34", maria_silva))
        assert await repository.exists(db_session, "AB12CD34") is True

    @pytest.mark.asyncio
    async def test_put_overwrites_same_short_id(self, db_session, maria_silva):
        await repository.put(db_session, make_document("AB12CD34", maria_silva))
        renamed = maria_silva.model_copy(update={"full_name": "Maria J. Silva"})

        await repository.put(db_session, make_document("AB12CD34", renamed))

        documents = await repository.list_all(db_session)
        assert len(documents) == 1
        assert documents[0].student["nomeCompleto"] == "Maria J. Silva"

    @pytest.mark.asyncio
    async def test_student_key_order_survives_round_trip(self, db_session, maria_silva):
        await repository.put(db_session, make_document("AB12CD34", maria_silva))
        db_session.expunge_all()

        stored = await repository.get(db_session, "AB12CD34")

        assert list(stored.student) == list(maria_silva.to_canonical())
        assert list(stored.student["notas"]) == ["matematica", "portugues", "fisica"]


class TestUpdateAndDelete:
    @pytest.mark.asyncio
    async def test_update_student_keeps_digest(self, db_session, maria_silva):
        original = await repository.put(db_session, make_document("AB12CD34", maria_silva))
        digest = original.digest
        amended = {**maria_silva.to_canonical(), "classe": "12"}

        updated = await repository.update_student(
            db_session, "AB12CD34", amended, AcademicTrack.SECONDARY
        )

        assert updated.student["classe"] == "12"
        assert updated.digest == digest

    @pytest.mark.asyncio
    async def test_update_student_missing(self, db_session, maria_silva):
        assert await repository.update_student(
            db_session, "ZZZZZZZZ", {}, AcademicTrack.PRIMARY
        ) is None

    @pytest.mark.asyncio
    async def test_delete(self, db_session, maria_silva):
        await repository.put(db_session, make_document("AB12CD34", maria_silva))

        assert await repository.delete(db_session, "AB12CD34") is True
        assert await repository.get(db_session, "AB12CD34") is None
        assert await repository.delete(db_session, "AB12CD34") is False


class TestListing:
    @pytest.mark.asyncio
    async def test_list_all(self, db_session, maria_silva):
        await repository.put(db_session, make_document("AAAAAAAA", maria_silva))
        await repository.put(db_session, make_document("BBBBBBBB", maria_silva, school="Outra"))

        short_ids = {doc.short_id for doc in await repository.list_all(db_session)}

        assert short_ids == {"AAAAAAAA", "BBBBBBBB"}

    @pytest.mark.asyncio
    async def test_list_by_school(self, db_session, maria_silva):
        await repository.put(db_session, make_document("AAAAAAAA", maria_silva))
        await repository.put(db_session, make_document("BBBBBBBB", maria_silva, school="Outra"))

        documents = await repository.list_by_school(db_session, "Escola Técnica de Gaza")

        assert [doc.short_id for doc in documents] == ["AAAAAAAA"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("search", ["maria", "aaaa", "98765", "  MARIA SILVA "])
    async def test_search_matches_name_id_and_bi(self, db_session, maria_silva, search):
        await repository.put(db_session, make_document("AAAAAAAA", maria_silva))

        documents = await repository.list_by_school(
            db_session, "Escola Técnica de Gaza", search=search
        )

        assert len(documents) == 1

    @pytest.mark.asyncio
    async def test_search_without_match(self, db_session, maria_silva):
        await repository.put(db_session, make_document("AAAAAAAA", maria_silva))

        documents = await repository.list_by_school(
            db_session, "Escola Técnica de Gaza", search="joão"
        )

        assert documents == []
