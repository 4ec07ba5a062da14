"""
Package marker for source code under `src.quote_export`.
CSV and printable HTML renderings of a priced scenario.
"""
