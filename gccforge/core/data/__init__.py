"""
Static build data — ``__init__.py`` re-exports the lookup tables.

Everything here is plain dicts and tuples: the resolver, acquisition
and stage builders read from these tables and never hard-code a
revision, URL or triple themselves.
"""

from gccforge.core.data.constants import (  # noqa: F401
    CODEC_PROGRAMS,
    CONFIGURE_BASELINE,
    DEFAULT_LOG_FILE,
    DOWNLOADERS,
)
from gccforge.core.data.patches import GCC_PATCHES  # noqa: F401
from gccforge.core.data.revisions import (  # noqa: F401
    GIT_REVISIONS,
    KNOWN_UNAVAILABLE,
    TARBALL_REVISIONS,
)
from gccforge.core.data.triples import (  # noqa: F401
    BARE_METAL_TRIPLES,
    HOSTED_TRIPLES,
    KERNEL_ARCHES,
    MACHINE_ARCHES,
)
