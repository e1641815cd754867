"""Helpers shared across the tracker: dates, validation, logging setup."""
