"""State layer.

This package is the single place where store notifications are merged into
the panel's per-device snapshot.
"""
