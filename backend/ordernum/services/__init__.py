"""Services module.

This module provides the service layer architecture:
- exceptions: Custom service exceptions
- sequence: Channel counters, number allocation and the historical backfill
- orders: Order management services
"""
