"""
Connection module for per-connection lifecycle handling.

Binds transport events (join, message, heartbeat, disconnect) to the
presence registry, the activity clock and the broadcast relay.
"""
