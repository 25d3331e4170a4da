"""
Token Tracker: launch history and creator reputation for newly observed tokens.

Records every token seen on the feed, counts repeat launches under the same
name or creator, and keeps per-creator scam/rug counters that only move
forward. Modular layout: database (store + ledger), authority (mint checks),
ingestion (wiring), tools (operator CLI).
"""

__version__ = "0.1.0"
