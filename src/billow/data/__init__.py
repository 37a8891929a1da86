"""
Static and demo data for Billow.

This package contains fixture data used by the demo backend for
development, testing and demonstrations without a running server.

Modules:
- demo_data: Seed clients, invoices, plans and account settings
"""
