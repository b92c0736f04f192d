"""
Contract schemas.

Each schema module registers its schemas on import. Importing this package
registers everything, computes the projections, then freezes the registries:
nothing can be registered afterwards.
"""

# Import schema modules to auto-register schemas (order matters: refs first)
from . import users
from . import posts
from . import envelopes

from ..projection import project
from ..registry import freeze_registries

# User -> PostAuthor, computed once and cached in the registry
AUTHOR_PROJECTION = project("User", "PostAuthor")

freeze_registries()

__all__ = ['users', 'posts', 'envelopes', 'AUTHOR_PROJECTION']
