"""Shared helpers: clocks, deadlines and logging setup."""
