"""Moisture: fee-funded survival rounds with oracle-attested scores."""

__version__ = "0.1.0"
