"""Teller - a conversational assistant for a financial platform."""

__version__ = "0.1.0"
