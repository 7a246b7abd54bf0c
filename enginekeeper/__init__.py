"""
enginekeeper: Node.js engine compatibility for npm dependencies

enginekeeper answers one question for every dependency of a project:
which published releases will run on a given Node.js version?

Features include:
    • Engine requirement derivation (``engines.node``, ``_nodeVersion``, wildcard)
    • Compatible version ranges collapsed into ``>=a <=b || ...`` form
    • Pinning each dependency in package.json to its newest compatible release
    • Configurable npm registry and target Node.js version

Typical usage::

    $ enginekeeper check --node 14.21.3
    $ enginekeeper update -d lodash -d chalk --backup
"""

from __future__ import annotations

from enginekeeper.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "enginekeeper Contributors"
__license__ = "Apache-2.0"
__description__ = "Find npm dependency versions compatible with a Node.js version."

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "__version__",
]
