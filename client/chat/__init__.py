"""
Chat module for client-side messaging functionality.

Handles:
- Sending text and file messages
- Receiving messages and system notices
- Heartbeats
- Clearing the local view on reset
"""
