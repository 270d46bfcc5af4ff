"""
HTTP service for the gateway.
"""
