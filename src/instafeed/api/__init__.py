"""HTTP API for instafeed."""
