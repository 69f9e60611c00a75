"""
Unit tests for transfer document schemas.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from app.modules.documents.integrity import STUDENT_KEY_ORDER
from app.modules.documents.models import AcademicTrack
from app.modules.documents.schemas import SUBJECTS_BY_TRACK, StudentRecord


class TestStudentRecord:
    """Tests for StudentRecord validation and canonical mapping."""

    def test_canonical_keys_follow_digest_order(self, maria_silva):
        assert tuple(maria_silva.to_canonical()) == STUDENT_KEY_ORDER

    def test_canonical_values(self, maria_silva):
        canonical = maria_silva.to_canonical()
        assert canonical["nomeCompleto"] == "Maria Silva"
        assert canonical["dataMatricula"] == "2021-02-01"
        assert canonical["nivelAcademico"] == "secondary"
        assert canonical["notas"] == {"matematica": "15", "portugues": "14", "fisica": "12"}

    def test_from_canonical_restores_record(self, maria_silva):
        assert StudentRecord.from_canonical(maria_silva.to_canonical()) == maria_silva

    def test_from_canonical_rejects_malformed_mapping(self):
        with pytest.raises(ValidationError):
            StudentRecord.from_canonical({"nomeCompleto": "Maria Silva"})

    def test_rejects_subject_of_other_track(self):
        with pytest.raises(ValidationError, match="quimica"):
            StudentRecord(
                full_name="João Mateus",
                national_id="123456789",
                enrollment_date=date(2020, 2, 1),
                grade_level="6",
                academic_track=AcademicTrack.PRIMARY,
                grades={"quimica": "12"},
            )

    def test_rejects_blank_name(self):
        with pytest.raises(ValidationError):
            StudentRecord(
                full_name="   ",
                national_id="123456789",
                enrollment_date=date(2020, 2, 1),
                grade_level="6",
                academic_track=AcademicTrack.PRIMARY,
            )

    def test_rejects_overlong_score(self):
        with pytest.raises(ValidationError):
            StudentRecord(
                full_name="João Mateus",
                national_id="123456789",
                enrollment_date=date(2020, 2, 1),
                grade_level="6",
                academic_track=AcademicTrack.PRIMARY,
                grades={"matematica": "123456"},
            )

    def test_remarks_default_to_empty(self):
        record = StudentRecord(
            full_name="João Mateus",
            national_id="123456789",
            enrollment_date=date(2020, 2, 1),
            grade_level="6",
            academic_track=AcademicTrack.PRIMARY,
        )
        assert record.remarks == ""
        assert record.grades == {}


class TestSubjects:
    def test_both_tracks_have_subjects(self):
        assert set(SUBJECTS_BY_TRACK) == set(AcademicTrack)

    def test_subject_keys_unique_per_track(self):
        for subjects in SUBJECTS_BY_TRACK.values():
            keys = [subject.key for subject in subjects]
            assert len(keys) == len(set(keys))
