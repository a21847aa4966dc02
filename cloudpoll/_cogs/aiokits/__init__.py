"""
Asyncio-related utilities, generic and not specific to the control plane.
"""
