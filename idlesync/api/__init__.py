"""Local HTTP/WebSocket status surface."""
