"""
Craftworks - personal web framework and crafting tools site.

Package structure:
- core/      - Framework core (config, interfaces, connectors, cache, mapping)
- common/    - Shared utilities (logging)
- models/    - Site entities built on the data-mapping engine
"""

__version__ = "1.0.0"
