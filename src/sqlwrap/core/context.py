"""Transaction Context Variables.

Uses Python's contextvars for transaction-scoped state that works with
async/await. Each task running a transaction sees only its own id.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token

# Identifier of the transaction running in the current context, for log correlation
_transaction_id_var: ContextVar[str | None] = ContextVar("transaction_id", default=None)


def get_transaction_id() -> str | None:
    """Get the current transaction's identifier."""
    return _transaction_id_var.get()


def set_transaction_id(transaction_id: str | None = None) -> Token:
    """Set (or generate) the transaction id for the current context.

    Returns the token needed by ``reset_transaction_id``.
    """
    if transaction_id is None:
        transaction_id = uuid.uuid4().hex[:12]
    return _transaction_id_var.set(transaction_id)


def reset_transaction_id(token: Token) -> None:
    """Restore the transaction id that was active before ``set_transaction_id``."""
    _transaction_id_var.reset(token)
