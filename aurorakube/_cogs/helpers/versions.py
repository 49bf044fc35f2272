"""
Detecting the library's own version.

The codebase does not contain the version directly: releases depend
on tagging rather than on in-code version bumps.

The version is determined only once at startup when the code is loaded.
It is used in the ``User-Agent`` header of the API requests.
"""
from typing import Optional

version: Optional[str] = None

try:
    import importlib.metadata
except ImportError:
    pass
else:
    try:
        name, *_ = __name__.split('.')  # usually "aurorakube", unless renamed/forked.
        version = importlib.metadata.version(name)
    except Exception:
        pass  # installed from git, as a plain directory, etc.
