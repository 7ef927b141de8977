"""
PinBank: a personal banking demo built around an in-memory account ledger.
"""

__version__ = "1.0.0"
