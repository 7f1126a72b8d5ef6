"""
Life Tracker engine.
Quest lifecycle, daily activity aggregation and versioned backup/restore
on top of flat per-domain JSON files.
"""

__version__ = "1.0.0"
