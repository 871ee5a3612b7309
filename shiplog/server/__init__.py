"""HTTP host for the ship log editor."""
