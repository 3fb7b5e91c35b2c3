"""
Presence module for server-side state tracking.

Handles:
- Connection registry (who is present)
- Global activity clock
- Idle reset of shared state
"""
