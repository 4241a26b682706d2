"""stagejury: moderation consensus and trust-weighted tiering for submission contests."""

__version__ = "0.1.0"
