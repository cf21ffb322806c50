"""Kulture contest ledger: paid voting and prize settlement for the annual video contest."""

__version__ = "0.1.0"
