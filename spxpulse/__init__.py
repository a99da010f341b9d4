"""
SPX Pulse - signal scoring, trade tracking and scalp alerting for index options.
"""

__version__ = "0.1.0"
