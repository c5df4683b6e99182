from __future__ import annotations

from cardstack.engine import Engine
from cardstack.snapshot_store import KeyValueStore


_ENGINE: Engine | None = None


def init_engine(*, store: KeyValueStore | None = None) -> Engine:
    """Build the process engine once, restoring any saved snapshot from `store`.

    Safe to call multiple times; subsequent calls return the already built instance.
    """

    global _ENGINE
    if _ENGINE is None:
        engine = Engine()
        if store is not None:
            engine.restore(store)
        _ENGINE = engine
    return _ENGINE


def reset_engine_for_tests() -> None:
    """Drop the cached engine so each test starts from the default stack."""

    global _ENGINE
    _ENGINE = None


def get_engine() -> Engine:
    if _ENGINE is None:
        raise RuntimeError("Engine not initialized. Call init_engine() first.")
    return _ENGINE
