"""contentvec: semantic vector search over headless-CMS content.

Indexes free-text fields declared by embedding profiles into pgvector and
serves metric-aware nearest-neighbour search over them.
"""

__version__ = "0.1.0"
