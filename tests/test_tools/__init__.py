"""
Test Tools Package
Tests for the tools module (email notifications)
"""

__all__ = [
    "test_notification_service",
]
