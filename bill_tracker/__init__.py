"""
Bill Tracker - Source Package

The bill-matching core of a personal finance tracker.

It expands recurring bill definitions into calendar occurrences and links
expense transactions to those occurrences.

DESIGN PRINCIPLES:
1. One ledger list holds both transactions and bill definitions
2. Every operation returns a new list (copy-on-write)
3. Manual confirmations always win over auto-matching
4. Occurrences are derived on demand, never stored
"""

__version__ = "1.0.0"
__author__ = "Bill Tracker Team"
