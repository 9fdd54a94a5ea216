"""Asyncio TCP chat: a whitelisted multi-user server, its client, and a basic one-to-one pair."""

__version__ = "0.1.0"
__all__ = ["basic", "client", "server", "userlist"]