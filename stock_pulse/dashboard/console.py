# stock_pulse/dashboard/console.py
"""
Terminal presentation for the live dashboard, built on rich.

The dashboard keeps the most recent MarketSnapshot and DetailSnapshot and
redraws only when a subscription hands it a new one, i.e. once per
committed flush. Live runs with auto_refresh off so the render scheduler
is the only thing pacing redraws.
"""
import logging
from typing import List, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from stock_pulse.utils import format_change, format_price
from stock_pulse.data.models import (
    DetailSnapshot, MarketSnapshot, SubscriptionState, SymbolState
)
from stock_pulse.data.preferences import PreferencesStore
from stock_pulse.data.symbol_store import search_states

logger = logging.getLogger(__name__)

STATE_STYLES = {
    SubscriptionState.IDLE: 'dim',
    SubscriptionState.CONNECTING: 'yellow',
    SubscriptionState.HISTORY_LOADING: 'yellow',
    SubscriptionState.WAITING_FOR_TICKS: 'cyan',
    SubscriptionState.LIVE: 'bold green',
    SubscriptionState.DISCONNECTED: 'bold red',
}

# Chart points listed under the detail panel
RECENT_POINTS = 10


def change_style(change: float) -> str:
    if change > 0:
        return 'green'
    if change < 0:
        return 'red'
    return 'white'


class ConsoleDashboard:
    """
    [CLASS SUMMARY]
    Purpose: Render the symbol list and the symbol detail view in a terminal
    Responsibilities:
        - Market table with price/change, favorites marked, pinned on top
        - Detail panel with status, price, metrics and recent chart points
        - Redraw on snapshot delivery only
    Usage:
        dashboard = ConsoleDashboard(preferences=prefs)
        market.subscribe(dashboard.update_market)
        with dashboard:
            ...
    """

    def __init__(self, console: Optional[Console] = None,
                 preferences: Optional[PreferencesStore] = None,
                 query: str = '', list_limit: int = 200):
        self.console = console or Console()
        self.preferences = preferences
        self.query = query
        self.list_limit = list_limit

        self.market: Optional[MarketSnapshot] = None
        self.detail: Optional[DetailSnapshot] = None
        self.redraws = 0
        self._live: Optional[Live] = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False

    def start(self):
        if self._live is not None:
            return
        self._live = Live(self.render(), console=self.console, auto_refresh=False)
        self._live.start()

    def stop(self):
        if self._live is None:
            return
        self._live.stop()
        self._live = None

    def set_query(self, query: str):
        self.query = query
        self.refresh()

    def update_market(self, snapshot: MarketSnapshot):
        self.market = snapshot
        self.refresh()

    def update_detail(self, snapshot: Optional[DetailSnapshot]):
        self.detail = snapshot
        self.refresh()

    def refresh(self):
        self.redraws += 1
        if self._live is not None:
            self._live.update(self.render(), refresh=True)

    def render(self) -> Group:
        parts = [self.market_table()]
        if self.detail is not None:
            parts.append(self.detail_panel())
        return Group(*parts)

    def market_table(self) -> Table:
        if self.market is None:
            title = "Markets"
            states: List[SymbolState] = []
        else:
            title = f"Markets - {self.market.status or self.market.state.value}"
            states = list(self.market.states)

        favorites = set(self.preferences.favorites) if self.preferences else set()
        pinned = list(self.preferences.pinned) if self.preferences else []

        table = Table(title=title, expand=True)
        table.add_column("", width=2)
        table.add_column("Symbol", style="cyan")
        table.add_column("Name", style="dim")
        table.add_column("Price", justify="right")
        table.add_column("Change", justify="right")

        by_symbol = {state.symbol: state for state in states}
        pinned_rows = [by_symbol[s] for s in pinned if s in by_symbol]
        for state in pinned_rows:
            self._add_row(table, state, favorites, marker="P")
        if pinned_rows:
            table.add_section()

        pinned_set = set(pinned)
        rest = [s for s in states if s.symbol not in pinned_set]
        for state in search_states(rest, self.query, self.list_limit):
            self._add_row(table, state, favorites)

        return table

    def _add_row(self, table: Table, state: SymbolState, favorites, marker: str = ''):
        star = "*" if state.symbol in favorites else marker
        table.add_row(
            star,
            state.symbol,
            state.name or '',
            format_price(state.price),
            Text(format_change(state.change), style=change_style(state.change)),
        )

    def detail_panel(self) -> Panel:
        snapshot = self.detail
        metrics = snapshot.metrics

        summary = Table.grid(padding=(0, 2))
        summary.add_column(style="bold")
        summary.add_column()
        summary.add_row("Status", Text(snapshot.status or snapshot.state.value,
                                       style=STATE_STYLES.get(snapshot.state, 'white')))
        summary.add_row("Price", format_price(metrics.last_price) if metrics.last_price is not None else "-")
        summary.add_row("Change", Text(format_change(metrics.change), style=change_style(metrics.change)))
        summary.add_row("High", format_price(metrics.high) if metrics.high is not None else "-")
        summary.add_row("Low", format_price(metrics.low) if metrics.low is not None else "-")
        summary.add_row("Points", str(metrics.points))

        recent = Table(title="Recent", show_edge=False)
        recent.add_column("Time")
        recent.add_column("Price", justify="right")
        for point in snapshot.points[-RECENT_POINTS:]:
            recent.add_row(point.time, format_price(point.price))

        return Panel(Group(summary, recent), title=snapshot.symbol, border_style="blue")
