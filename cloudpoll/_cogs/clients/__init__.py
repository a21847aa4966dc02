"""
The HTTP client of the control plane: sessions, requests, failures.

This is the only place where ``aiohttp`` is used directly.
"""
