# This package contains the HTTP client used by scripts and other services to call the simulator API.
# It exists so callers share one place for envelope parsing and error translation.

__all__ = ["api_client"]
