"""Token Pulse - launch analytics for the auto.fun token listing.

Polls the token-listing API, keeps active tokens, and derives rolling
24-hour hourly/cumulative series and sortable token tables for the
dashboard and CLI.
"""

__version__ = "0.1.0"
