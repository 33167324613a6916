"""HTTP surface of the feed directory."""
