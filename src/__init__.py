# src/__init__.py — v1
"""shipwright: autonomous ship-a-feature pipeline.

Takes a feature description through plan, build, deploy, verify, test, footage capture,
trailer rendering and publication, retrying failed phases and narrating progress on an
event bus.
"""

from shipwright.version import __version__

__all__ = ["__version__"]
