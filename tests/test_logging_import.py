"""
Test that tracker_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from tracker_logging and use the logger."""
    from sol_wallet_tracker.tracker_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_wallet_and_short_id():
    from sol_wallet_tracker.tracker_logging import bind_wallet, short_id

    assert short_id("9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka") == "9QCfNuQu..."
    assert short_id("abc") == "abc"
    bind_wallet("9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka").info("bound_message")


def test_event_renamed_to_event_type():
    from sol_wallet_tracker.tracker_logging.logger import _event_type

    out = _event_type(None, "info", {"event": "cache_entry_expired", "age_ms": 5})
    assert out == {"event_type": "cache_entry_expired", "message": "cache_entry_expired", "age_ms": 5}
    assert _event_type(None, "info", {"age_ms": 5}) == {"age_ms": 5}
