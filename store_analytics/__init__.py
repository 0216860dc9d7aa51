"""
Store Analytics

Dashboard analytics for a single storefront: revenue, orders, products,
customers, financial and inventory figures over a selectable window, plus a
polled live KPI snapshot.
"""

__version__ = "1.0.0"
