"""
Billow resource sync layer.

Keeps a client-side view of a user's invoices, clients and financial
aggregates consistent with the Billow backend: typed resource access,
per-view query caching with stale-response rejection, debounced search,
serialized form submission and derived analytics.
"""

__version__ = "0.1.0"
