"""
Tools Package
External integrations for the Smart HealthMate system
"""

from .notification_service import (
    NotificationService,
    NotificationResult,
    notification_service
)

__all__ = [
    # Notification Service
    "NotificationService",
    "NotificationResult",
    "notification_service"
]
