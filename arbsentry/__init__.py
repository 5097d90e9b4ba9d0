"""
ArbSentry - Cross-venue sports betting arbitrage detection.

Finds the same real-world event on Azuro and Overtime, compares their odds
after commissions and gas, and records guaranteed-profit stake splits.
"""

__version__ = "0.1.0"
