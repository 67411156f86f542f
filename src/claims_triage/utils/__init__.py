"""Shared helpers for claims triage."""

from claims_triage.utils.number_parsing import parse_decimal, parse_int

__all__ = ["parse_decimal", "parse_int"]
