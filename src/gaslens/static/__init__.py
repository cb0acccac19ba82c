"""Static gas analysis: scanning, costing, projection, caching and rewriting."""
