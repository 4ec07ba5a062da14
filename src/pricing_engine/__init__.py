"""
Package marker for source code under `src.pricing_engine`.
Pure pricing math: tier splits, row and scenario totals, auto-add rules and catalog filters.
"""
