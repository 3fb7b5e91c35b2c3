"""
Chat module for server-side messaging functionality.

Handles:
- Chat event broadcasting to every open connection
- Per-peer outbound queues
- Timestamp and avatar enrichment
"""
