# stock_pulse/dashboard/__init__.py
"""
Subscriptions, render pacing and terminal presentation
"""
from .render_scheduler import RenderScheduler, AsyncioFrameClock, FrameClock
from .subscriptions import LifecycleToken, SubscriptionManager, MarketWatchSubscription
from .console import ConsoleDashboard

__all__ = [
    'RenderScheduler', 'AsyncioFrameClock', 'FrameClock',
    'LifecycleToken', 'SubscriptionManager', 'MarketWatchSubscription',
    'ConsoleDashboard'
]
