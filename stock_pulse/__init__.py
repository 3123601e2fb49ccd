# stock_pulse/__init__.py
"""
Live market dashboard core: Socket.IO ingestion, per-symbol reconciliation
and frame-paced presentation.
"""
__version__ = "0.1.0"
