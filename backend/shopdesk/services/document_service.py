# Overview: Service-layer operations for document numbering; encapsulates counter rows.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence
from .concurrency import lock_for_update

INVOICE = "INVOICE"
SUPPLIER_INVOICE = "SUPPLIER_INVOICE"


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def format_document_number(prefix: str, number: int, pad: int) -> str:
    return f"{prefix}{number:0{pad}d}"


def _locked_sequence(document_type: str) -> DocumentSequence:
    query = db.session.query(DocumentSequence).filter_by(document_type=document_type)
    seq = lock_for_update(query).first()
    if seq is not None:
        return seq

    # First use of this type. A concurrent first use loses on the unique
    # constraint; the savepoint keeps the caller's transaction intact.
    try:
        with db.session.begin_nested():
            seq = DocumentSequence(document_type=document_type, next_number=1)
            db.session.add(seq)
    except IntegrityError:
        seq = lock_for_update(query).first()
        if seq is None:
            raise DocumentSequenceError(f"could not initialise sequence {document_type}")
    return seq


def next_document_number(
    *,
    document_type: str,
    prefix: str,
    pad: int = 5,
    minimum: int = 1,
) -> str:
    """
    Allocate the next number for document_type inside the caller's transaction.

    The counter row stays locked until the caller commits or rolls back, so
    the number is consumed only if the document is. minimum lets callers
    skip past numbers that already exist outside the counter (e.g. typed in
    by hand).

    Does not commit.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")

    seq = _locked_sequence(document_type)
    number = max(seq.next_number, minimum)
    seq.next_number = number + 1
    db.session.flush()
    return format_document_number(prefix, number, pad)


def peek_document_number(*, document_type: str, prefix: str, pad: int = 5, minimum: int = 1) -> str:
    """Next number that would be allocated, without consuming it."""
    current = (
        db.session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type)
        .scalar()
    )
    return format_document_number(prefix, max(current or 1, minimum), pad)
