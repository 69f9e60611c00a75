"""
Transfer Documents Module

Issuance and verification of school transfer documents:
1. A director issues a document for a student of their school
2. The document gets an 8-character id and a SHA-256 digest over the
   student data, issue date and id
3. Anyone can verify the document by id or by its QR payload (ID|digest)

Security Features:
- Digest recomputed from stored data on every verification
- Tampered documents reported distinctly from unknown ids
- QR digest cross-checked against the stored document
- Public verification rate limited per client IP
"""

from .router import router, verify_router

__all__ = ["router", "verify_router"]
