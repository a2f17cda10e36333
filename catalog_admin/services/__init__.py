"""Service layer: store-backed operations and outbound calls."""
