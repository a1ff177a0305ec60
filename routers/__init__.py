"""HTTP/WebSocket routers for the zone control surface."""
