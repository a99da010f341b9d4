"""Stateful engines: trade lifecycle, scalp alerts, cooldown ledger, sessions."""
