"""
Microcredit Engine

Loan accounting and daily cash reconciliation for field-collection
microfinance. All monetary math uses Decimal.
"""

__version__ = "1.0.0"
