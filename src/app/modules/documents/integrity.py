"""
Document Integrity Primitives

Digest computation, short identifier generation and the QR payload format
used to issue and verify transfer documents.

The digest covers the student data, the issue date and the short id,
serialized as compact JSON with a fixed key order. Only the key names and
their order follow the offline browser app; its track values (primario,
secundario) and UTC issue dates differ, so documents it printed do not
verify here. Changing STUDENT_KEY_ORDER or the separators invalidates every
document issued by this service.
"""

import hashlib
import json
import random
import re
import string
from collections.abc import Mapping
from datetime import date
from typing import Any

SHORT_ID_LENGTH = 8
SHORT_ID_ALPHABET = string.ascii_uppercase + string.digits
SHORT_ID_PATTERN = re.compile(r"^[A-Z0-9]{8}$")

DIGEST_PATTERN = re.compile(r"^[0-9a-f]{64}$")

QR_SEPARATOR = "|"

# Canonical order of the persisted student keys
STUDENT_KEY_ORDER: tuple[str, ...] = (
    "nomeCompleto",
    "numeroBi",
    "dataMatricula",
    "classe",
    "nivelAcademico",
    "notas",
    "observacoes",
)

ISSUE_DATE_KEY = "dataEmissao"
SHORT_ID_KEY = "shortId"


class InvalidQRPayloadError(ValueError):
    """Raised when a QR payload is not of the form SHORTID|digest."""


def compute_digest(data: bytes) -> str:
    """
    Hash bytes with SHA-256.

    Returns:
        64-character lowercase hex digest
    """
    return hashlib.sha256(data).hexdigest()


def generate_short_id() -> str:
    """
    Generate an 8-character uppercase alphanumeric identifier.

    Uses the non-cryptographic ``random`` module; the identifier is a public
    reference, not a secret. Uniqueness is checked by the caller.
    """
    return "".join(random.choices(SHORT_ID_ALPHABET, k=SHORT_ID_LENGTH))


def normalize_short_id(short_id: str) -> str:
    """Trim and uppercase a user-supplied short id."""
    return short_id.strip().upper()


def is_valid_short_id(short_id: str) -> bool:
    return bool(SHORT_ID_PATTERN.match(short_id))


def canonical_student(student: Mapping[str, Any]) -> dict[str, Any]:
    """
    Order a stored student mapping canonically.

    Known keys come first in STUDENT_KEY_ORDER (missing ones as None),
    followed by any unexpected keys in their stored order, so that adding
    or removing fields changes the digest.
    """
    ordered = {key: student.get(key) for key in STUDENT_KEY_ORDER}
    for key, value in student.items():
        if key not in ordered:
            ordered[key] = value
    return ordered


def serialize_document(student: Mapping[str, Any], issue_date: date | str, short_id: str) -> bytes:
    """Serialize the hashed fields of a document to canonical JSON bytes."""
    if isinstance(issue_date, date):
        issue_date = issue_date.isoformat()

    payload = canonical_student(student)
    payload[ISSUE_DATE_KEY] = issue_date
    payload[SHORT_ID_KEY] = short_id

    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def document_digest(student: Mapping[str, Any], issue_date: date | str, short_id: str) -> str:
    """Digest of a document's student data, issue date and short id."""
    return compute_digest(serialize_document(student, issue_date, short_id))


def encode_qr_payload(short_id: str, digest: str) -> str:
    return f"{short_id}{QR_SEPARATOR}{digest}"


def decode_qr_payload(payload: str) -> tuple[str, str]:
    """
    Split a QR payload into (short_id, digest).

    The short id is normalized to uppercase and the digest to lowercase.

    Raises:
        InvalidQRPayloadError: If either half is missing or malformed
    """
    short_id, separator, digest = payload.strip().partition(QR_SEPARATOR)
    if not separator:
        raise InvalidQRPayloadError("QR payload has no separator")

    short_id = normalize_short_id(short_id)
    digest = digest.strip().lower()

    if not is_valid_short_id(short_id):
        raise InvalidQRPayloadError("QR payload has an invalid document id")
    if not DIGEST_PATTERN.match(digest):
        raise InvalidQRPayloadError("QR payload has an invalid digest")

    return short_id, digest
