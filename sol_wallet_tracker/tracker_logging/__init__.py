"""
Structured logging for the wallet tracker.

JSON logs with timestamp, event_type, wallet_id and request context.
"""

from sol_wallet_tracker.tracker_logging.logger import bind_wallet, get_logger, short_id

__all__ = ["bind_wallet", "get_logger", "short_id"]
