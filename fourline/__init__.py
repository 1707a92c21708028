"""Real-time two-player grid game server."""
