# clinic_core/common/db.py
from __future__ import annotations

from contextlib import contextmanager

from django.db import DEFAULT_DB_ALIAS, connections, transaction


@contextmanager
def consistent_snapshot(using: str = DEFAULT_DB_ALIAS):
    """
    Run several reads (e.g. count + page) against one snapshot.

    On PostgreSQL the outermost block is upgraded to REPEATABLE READ; the SET
    must be the first statement of the transaction, so nested blocks (and the
    test suite's wrapping transaction) just join the outer one.
    """
    conn = connections[using]
    outermost = not conn.in_atomic_block

    with transaction.atomic(using=using):
        if outermost and conn.vendor == "postgresql":
            with conn.cursor() as cursor:
                cursor.execute("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ")
        yield conn
