"""
Client package for the Chat Relay system.

This package contains all client-side functionality including:
- Joining and chat messaging
- File messages
- Heartbeats and reset handling
- Configuration and utilities
"""
