"""Command line interface (``gst-audit``)."""
