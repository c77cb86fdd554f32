"""Scheduled reward distribution against a Soroban-enabled Stellar network."""

__version__ = "0.1.0"
