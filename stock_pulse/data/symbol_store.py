# stock_pulse/data/symbol_store.py
"""
Keyed store of reconciled per-symbol state.

Every market_update entry and every accepted tick is merged here
immediately and in arrival order. Listeners are only told about it when a
committed flush calls publish().
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional

from stock_pulse.utils import to_number, optional_number, percent_change
from .models import SymbolState, MarketUpdate, SymbolSeed

logger = logging.getLogger(__name__)

StoreListener = Callable[[List[SymbolState]], None]

# Entries listed for an empty query when no limit is given
DEFAULT_LIST_LIMIT = 200


def search_states(states: Iterable[SymbolState], query: str = '',
                  limit: Optional[int] = None, copy: bool = False) -> List[SymbolState]:
    """
    Case-insensitive substring match on symbol or name, in the given order.
    An empty query returns the first 200 entries unless a limit is given.
    """
    q = (query or '').strip().lower()
    if not q:
        matches = list(states)[:limit if limit is not None else DEFAULT_LIST_LIMIT]
    else:
        matches = [
            state for state in states
            if q in state.symbol.lower() or q in (state.name or '').lower()
        ]
        if limit is not None:
            matches = matches[:limit]
    return [state.copy() for state in matches] if copy else matches


class SymbolStateStore:
    """
    Mapping symbol -> SymbolState, in first-seen order.

    No method raises on malformed payloads: prices coerce to 0, optional
    numbers that are not numeric are treated as absent.
    """

    def __init__(self):
        self._states: Dict[str, SymbolState] = {}
        self._listeners: List[StoreListener] = []

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._states

    def initialize(self, seeds: Iterable[SymbolSeed]) -> int:
        """Bulk-load a market snapshot; returns how many seeds were stored"""
        loaded = 0
        for seed in seeds or []:
            if not isinstance(seed, dict):
                continue
            symbol = seed.get('symbol')
            if not symbol:
                logger.debug(f"Skipping seed without symbol: {seed!r}")
                continue

            price = to_number(seed.get('price'), field='price')
            open1m = to_number(seed.get('open1m'), field='open1m')
            change = percent_change(price, open1m)
            if change is None:
                change = to_number(seed.get('change'), field='change')

            existing = self._states.get(symbol)
            self._states[symbol] = SymbolState(
                symbol=symbol,
                price=price,
                open1m=open1m,
                change=change,
                last_event_time=seed.get('event_time', existing.last_event_time if existing else None),
                name=seed.get('name') or (existing.name if existing else None),
            )
            loaded += 1

        logger.info(f"Initialized {loaded} symbols ({len(self._states)} total)")
        return loaded

    def apply(self, update: MarketUpdate) -> Optional[SymbolState]:
        """
        Merge one partial update.

        open1m is only ever set by a seed or by the first update for an
        unseen symbol; later updates inherit it.
        """
        if not isinstance(update, dict):
            logger.debug(f"Ignoring non-mapping update: {update!r}")
            return None
        symbol = update.get('symbol')
        if not symbol:
            logger.debug(f"Ignoring update without symbol: {update!r}")
            return None

        price = to_number(update.get('price'), field='price')
        change = optional_number(update.get('percent_price_change'), 'percent_price_change')
        existing = self._states.get(symbol)

        if existing is not None:
            if change is None:
                change = percent_change(price, existing.open1m)
            if change is None:
                change = existing.change or 0.0
            existing.price = price
            existing.change = change
            if update.get('event_time') is not None:
                existing.last_event_time = update['event_time']
            return existing

        open1m = to_number(update.get('open1m'), field='open1m')
        if change is None:
            change = percent_change(price, open1m)
        state = SymbolState(
            symbol=symbol,
            price=price,
            open1m=open1m,
            change=change if change is not None else 0.0,
            last_event_time=update.get('event_time'),
        )
        self._states[symbol] = state
        return state

    def apply_batch(self, updates: Iterable[MarketUpdate]) -> int:
        """Apply a market_update batch strictly in array order"""
        if not isinstance(updates, (list, tuple)):
            logger.debug(f"Ignoring malformed batch of type {type(updates).__name__}")
            return 0
        applied = 0
        for update in updates:
            if self.apply(update) is not None:
                applied += 1
        return applied

    def get(self, symbol: str) -> Optional[SymbolState]:
        state = self._states.get(symbol)
        return state.copy() if state else None

    def snapshot(self) -> List[SymbolState]:
        """Copies of all entries in insertion order"""
        return [state.copy() for state in self._states.values()]

    def search(self, query: str = '', limit: Optional[int] = None) -> List[SymbolState]:
        """Copies of the entries matching query (see search_states)"""
        return search_states(self._states.values(), query, limit, copy=True)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a snapshot listener; returns the matching unsubscribe"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self) -> None:
        """Hand the current snapshot to every listener (called on committed flush)"""
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Store listener failed")
