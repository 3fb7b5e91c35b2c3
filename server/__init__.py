"""
Server package for the Chat Relay system.

This package contains all server-side functionality including:
- Presence tracking and idle reset
- Chat event broadcasting
- Per-connection lifecycle handling
- Configuration and utilities
"""
