"""Process-wide SettlementEngine, wired to the notification event bus."""

from src.pt_notify.subscribers import build_event_bus
from src.pt_settlement.engine.engine import SettlementEngine

_engine: SettlementEngine | None = None


def get_settlement_engine() -> SettlementEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = SettlementEngine(events=build_event_bus())
    return _engine
