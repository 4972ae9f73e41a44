"""Read-only HTTP quote service."""
