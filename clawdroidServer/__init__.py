"""ClawdroidServer - HTTP/WebSocket front end for screen parsing and decisions."""
