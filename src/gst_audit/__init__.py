"""
GST Audit - scheduled GST compliance reports for a web store.

Builds the monthly tax-pivot report from order data, mails it once per
period however many triggers fire, and exposes a keyed webhook for hosts
whose own scheduler cannot be trusted.
"""

__version__ = "0.1.0"
