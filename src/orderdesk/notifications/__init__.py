"""Channel adapter registry: pluggable notification dispatch channels.

Provides singleton access to channel adapters. Fake adapters are the
default; a real provider is wired in with ``register_channel``.
"""

from enum import Enum


class NotificationChannel(Enum):
    EMAIL = "email"
    SMS = "sms"


_channel_instances: dict[str, object] = {}


def get_channel(channel_type: str):
    """Return the configured channel adapter (singleton per channel type).

    Args:
        channel_type: One of NotificationChannel enum values ("email", "sms")
    """
    if channel_type not in _channel_instances:
        if channel_type == NotificationChannel.EMAIL.value:
            from orderdesk.notifications.fake_email import FakeEmailAdapter

            _channel_instances[channel_type] = FakeEmailAdapter()
        elif channel_type == NotificationChannel.SMS.value:
            from orderdesk.notifications.fake_sms import FakeSMSAdapter

            _channel_instances[channel_type] = FakeSMSAdapter()
        else:
            raise ValueError(f"Unknown channel type: {channel_type}")

    return _channel_instances[channel_type]


def register_channel(channel_type: str, adapter) -> None:
    """Install a specific adapter for a channel, replacing any existing one."""
    NotificationChannel(channel_type)
    _channel_instances[channel_type] = adapter


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()
