"""
Build request — the raw operator selection before resolution.
"""

from __future__ import annotations

from pydantic import BaseModel

from gccforge.core.models.plan import Architecture, Codec, Flavor


class BuildRequest(BaseModel):
    """What the operator asked for on the command line."""

    architecture: Architecture
    flavor: Flavor
    version: int
    bare_metal: bool = False
    use_newlib: bool = False
    tarballs: bool = False
    full_history: bool = False
    no_update: bool = False
    tmpfs: bool = False
    jobs: int | None = None
    codec: Codec | None = None
    release: bool = False
