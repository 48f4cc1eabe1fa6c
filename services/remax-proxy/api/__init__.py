"""HTTP surface of the remax-proxy service."""
