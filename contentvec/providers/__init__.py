"""Concrete adapters for the interfaces in ``contentvec.interfaces``.

Subpackages are grouped by concern: embedding, vector_store,
profile_store, job_store, query_log, content, and the shared postgres
plumbing.  Import concrete classes from their subpackage.
"""
