"""
Retail Banking Account Requests

Account opening workflow for a retail bank: customers request checking,
savings, credit and currency accounts, managers approve or reject them, and
both sides are kept informed through a per-user notification inbox.
"""

__version__ = "1.0.0"
