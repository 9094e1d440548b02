"""
Invoicing Behaviours

Stackable behaviours for financial record types: currency-aware rounding and
formatting of monetary attributes, and ledger item total aggregation with
debit/credit semantics. All monetary arithmetic uses Decimal.
"""

__version__ = "1.0.0"
