from typing import Any, Callable


def optimistic_update(
    snapshot: Callable[[], Any],
    apply: Callable[[], None],
    request: Callable[[], Any],
    confirm: Callable[[Any], None],
    revert: Callable[[Any], None],
) -> Any:
    """
    Apply a speculative local change, then reconcile with the server.

    ``snapshot`` captures the state before ``apply`` runs. On success the
    server response goes to ``confirm`` and overwrites the speculative state;
    on any error ``revert`` receives the snapshot and the error is re-raised.
    """
    saved = snapshot()
    apply()
    try:
        result = request()
    except Exception:
        revert(saved)
        raise
    confirm(result)
    return result
