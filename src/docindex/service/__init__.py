"""Service layer - component wiring.

- Components: providers, vector store and reader built from config
- initialize_components: construct and initialize them
"""

from docindex.service.components import Components, initialize_components

__all__ = [
    "Components",
    "initialize_components",
]
