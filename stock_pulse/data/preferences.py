# stock_pulse/data/preferences.py
"""
User collections (favorites, pinned symbols, watchlists) persisted as JSON
arrays under fixed keys. The streaming core never touches this file.
"""
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

FAVORITES_KEY = 'favorites'
PINNED_KEY = 'pinned'
WATCHLISTS_KEY = 'watchlists'


def _dedup_keep_order(items: List[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


class PreferencesStore:
    """JSON-backed favorites/pinned/watchlists; every mutation is written through"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.favorites: List[str] = []
        self.pinned: List[str] = []
        self.watchlists: List[Dict[str, Any]] = []
        self.load()

    def load(self):
        """Read the file; a missing or corrupt file yields empty collections"""
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read preferences from {self.path}: {e}")
            return
        if not isinstance(data, dict):
            return

        self.favorites = _symbol_list(data.get(FAVORITES_KEY))
        self.pinned = _symbol_list(data.get(PINNED_KEY))
        watchlists = data.get(WATCHLISTS_KEY)
        self.watchlists = [
            {
                'id': w.get('id'),
                'name': str(w.get('name', '')),
                'symbols': _symbol_list(w.get('symbols')),
            }
            for w in (watchlists if isinstance(watchlists, list) else [])
            if isinstance(w, dict)
        ]

    def save(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            FAVORITES_KEY: self.favorites,
            PINNED_KEY: self.pinned,
            WATCHLISTS_KEY: self.watchlists,
        }
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n", encoding='utf-8')

    def toggle_favorite(self, symbol: str) -> bool:
        """Add to the front or remove; returns True if now a favorite"""
        self.favorites, added = _toggle(self.favorites, symbol)
        self.save()
        return added

    def toggle_pinned(self, symbol: str) -> bool:
        self.pinned, added = _toggle(self.pinned, symbol)
        self.save()
        return added

    def create_watchlist(self, name: str) -> Optional[Dict[str, Any]]:
        """New empty watchlist at the front; blank names are ignored"""
        if not name or not name.strip():
            return None
        watchlist = {'id': int(time.time() * 1000), 'name': name.strip(), 'symbols': []}
        # Two lists created within the same millisecond still need distinct ids
        while any(w['id'] == watchlist['id'] for w in self.watchlists):
            watchlist['id'] += 1
        self.watchlists.insert(0, watchlist)
        self.save()
        return watchlist

    def add_to_watchlist(self, watchlist_id: int, symbol: str) -> bool:
        for watchlist in self.watchlists:
            if watchlist['id'] != watchlist_id:
                continue
            watchlist['symbols'] = _dedup_keep_order(list(watchlist['symbols']) + [symbol])
            self.save()
            return True
        logger.debug(f"No watchlist with id {watchlist_id}")
        return False


def _toggle(items: List[str], symbol: str):
    if symbol in items:
        return [s for s in items if s != symbol], False
    return [symbol] + items, True


def _symbol_list(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    return _dedup_keep_order([str(s) for s in raw if isinstance(s, str) and s.strip()])
