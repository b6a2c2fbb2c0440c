"""Utility functions."""

from bankai.utils.text import clean_abstract, clean_title, extract_json_array, parse_date

__all__ = ["clean_abstract", "clean_title", "extract_json_array", "parse_date"]
