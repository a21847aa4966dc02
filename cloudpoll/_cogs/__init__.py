"""
Cogs are the low-level pieces of the library, independent of the polling.

They know about the control plane's HTTP conventions, the settings, and
the shapes of the resource states, but nothing about the sessions and budgets.
They never import from :mod:`cloudpoll._core`.
"""
