"""Utility helpers for mutarith."""

from mutarith.utils.helpers import Timer, count_allocations, format_ns
