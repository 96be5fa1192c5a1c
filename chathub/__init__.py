"""Self-hosted real-time message relay."""
