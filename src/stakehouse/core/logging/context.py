from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
job_id_var: ContextVar[str | None] = ContextVar("job_id", default=None)
cycle_id_var: ContextVar[str | None] = ContextVar("cycle_id", default=None)
tx_hash_var: ContextVar[str | None] = ContextVar("tx_hash", default=None)

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    "correlation_id": correlation_id_var,
    "job_id": job_id_var,
    "cycle_id": cycle_id_var,
    "tx_hash": tx_hash_var,
}


def set_context(**kwargs: str | None) -> dict[str, Token[str | None]]:
    tokens: dict[str, Token[str | None]] = {}
    for key, value in kwargs.items():
        var = _CONTEXT_VARS.get(key)
        if var is None:
            continue
        tokens[key] = var.set(value)
    return tokens


def reset_context(tokens: dict[str, Token[str | None]]) -> None:
    for key, token in tokens.items():
        var = _CONTEXT_VARS.get(key)
        if var is not None:
            var.reset(token)


@contextmanager
def log_context(
    correlation_id: str | None = None,
    job_id: str | None = None,
    cycle_id: str | None = None,
    tx_hash: str | None = None,
) -> Iterator[None]:
    # Only override the fields that were given so nested contexts keep outer values.
    values = {"correlation_id": correlation_id, "job_id": job_id, "cycle_id": cycle_id, "tx_hash": tx_hash}
    tokens = set_context(**{key: value for key, value in values.items() if value is not None})
    try:
        yield
    finally:
        reset_context(tokens)


def get_log_context() -> dict[str, str]:
    values = {key: var.get() for key, var in _CONTEXT_VARS.items()}
    return {key: value for key, value in values.items() if value is not None}
