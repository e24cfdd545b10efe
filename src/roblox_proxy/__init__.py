"""Caching forwarding proxy for Roblox web endpoints."""

__version__ = "0.1.0"
