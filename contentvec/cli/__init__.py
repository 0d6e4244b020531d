# =============================================================================
# contentvec/cli/__init__.py: CLI Module Overview
# =============================================================================
#
# Command-line tools for operators who need to work with contentvec outside
# of the HTTP API.  Run via `python -m contentvec.cli <command>`.
#
#   init-db   Create the pgvector extension, tables and indexes
#   profiles  List embedding profiles
#   index     Run an index (or --reindex) job for a profile and wait for it
#   search    Semantic search against one profile
#   stats     Vector counts, overall or per profile
#   history   Recent searches with their ranked results
#
# Architecture Notes:
#   - argparse for argument parsing, the same as the other tools.
#   - The components are built through contentvec.main.open_components so
#     the CLI embeds with exactly the provider and dimension the server uses.
# =============================================================================

"""CLI tools for contentvec.

- ``python -m contentvec.cli``: manage profiles, indexing and search.
"""
