"""
Detecting the library's own version.

The version is determined only once at startup when the code is loaded,
and is used in the User-Agent header of the control-plane requests.
"""
import importlib.metadata
from typing import Optional

version: Optional[str] = None

try:
    name, *_ = __name__.split('.')  # usually "cloudpoll", unless renamed/forked.
    version = importlib.metadata.version(name)
except importlib.metadata.PackageNotFoundError:
    pass  # used from a source tree, not installed.
