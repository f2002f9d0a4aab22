"""
HTTP API for on-demand verification.
"""
