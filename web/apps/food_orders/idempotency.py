"""Idempotency utilities for cart submissions.

This module stores and retrieves idempotency keys so a client retrying
``POST /food-orders/new`` does not place the same order twice. It supports
creating a record, detecting conflicts when the same key is used with a
different payload, and finalizing the stored response so retries can
short-circuit.
"""

import hashlib
import json

from django.db import IntegrityError, transaction

from .models import IdempotencyKey


def _hash(payload) -> str:
    """Compute a stable SHA-256 hash for a JSON-serializable payload.

    The payload is serialized with sorted keys and compact separators to
    ensure a deterministic representation before hashing.
    """
    body = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


@transaction.atomic
def get_or_create_idempotent(key: str, payload):
    """Get-or-create an idempotency record for the given key and payload.

    Behavior:
        - First request with a new key: create a record and return
          (False, rec).
        - Same key and same payload: lock the row and return (True, rec).
        - Same key, different payload: raise
          ValueError("IDEMPOTENCY_CONFLICT").

    The create path runs in a nested savepoint so an IntegrityError only
    rolls back that block; the existing-record path takes a row lock
    (SELECT ... FOR UPDATE).

    Args:
        key: Client-provided idempotency key.
        payload: Request payload used to compute the request hash.

    Returns:
        tuple[bool, IdempotencyKey]: (existing, rec).

    Raises:
        ValueError: If the key exists with a different payload hash.
    """
    h = _hash(payload)

    try:
        with transaction.atomic():
            rec = IdempotencyKey.objects.create(
                key=key, request_hash=h, response_status=0, response_body={}
            )
            return False, rec
    except IntegrityError:
        rec = IdempotencyKey.objects.select_for_update().get(key=key)
        if rec.request_hash != h:
            raise ValueError("IDEMPOTENCY_CONFLICT")
        return True, rec


def finalize(rec: IdempotencyKey, status_code: int, body, headers=None, ticket_id=None):
    """Persist the final response for an idempotent request.

    Args:
        rec: The idempotency record to update.
        status_code: HTTP status code to store.
        body: JSON-serializable response body.
        headers: Response headers to replay, e.g. Location and alerts.
        ticket_id: Optional ticket issued by this request.
    """
    rec.response_status = status_code
    rec.response_body = body
    rec.response_headers = headers or {}
    if ticket_id is not None:
        rec.ticket_id = ticket_id
    rec.save(update_fields=["response_status", "response_body", "response_headers", "ticket_id"])
