"""Poll API: verified one-vote-per-identity polling with aggregated results."""

__version__ = "0.1.0"
