"""Order management services."""
