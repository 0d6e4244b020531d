# =============================================================================
# contentvec/cli/manage.py: Operator CLI
# =============================================================================
#
# Supported subcommands:
#
#   init-db                    : create extension, tables and indexes
#   profiles                   : list profiles with their fields
#   index <profile> [--reindex]: run an indexing job and wait for it
#   search <profile> <query>   : semantic search scoped to one profile
#   stats [--profile P]        : count stored vectors
#   history [--profile P]      : recent searches, newest first
#
# <profile> may be a slug or a display name.  Handlers receive the component
# dict built by contentvec.main.build_components, so tests can pass fakes.
#
# Usage examples:
#   python -m contentvec.cli init-db
#   python -m contentvec.cli index exam-questions
#   python -m contentvec.cli search exam-questions "photosynthesis" -k 5
#   python -m contentvec.cli history --limit 10
# =============================================================================

"""Operator CLI for contentvec.

Usage::

    python -m contentvec.cli index exam-questions --reindex
    python -m contentvec.cli search exam-questions "cell division" -k 5
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from contentvec.config.settings import Settings
from contentvec.models.job import JobStatus, JobType
from contentvec.models.profile import Profile
from contentvec.models.vector import SearchOptions
from contentvec.utils.errors import ContentVecError, NotFoundError


async def _resolve_profile(components: dict[str, Any], identifier: str) -> Profile:
    registry = components["profile_registry"]
    profile = await registry.get_by_identifier(identifier)
    if profile is None:
        profile = await registry.get(identifier)
    if profile is None:
        suggestion = await registry.suggest(identifier)
        hint = f" (did you mean {suggestion!r}?)" if suggestion else ""
        raise NotFoundError(message=f"Profile {identifier!r} not found{hint}")
    return profile


async def _handle_init_db(args: argparse.Namespace, components: dict[str, Any]) -> int:
    # open_components has already created the schema by the time we get here.
    settings: Settings = components["settings"]
    print(f"Schema ready (vector dimension {settings.default_embedding_dimension}).")
    return 0


async def _handle_profiles(args: argparse.Namespace, components: dict[str, Any]) -> int:
    profiles = await components["profile_registry"].list()
    if not profiles:
        print("No profiles.")
        return 0
    for profile in profiles:
        state = "enabled" if profile.enabled else "disabled"
        print(
            f"{profile.slug:<24} {profile.distance_metric.value:<7} "
            f"dim={profile.embedding_dimension:<6} {state}  {profile.name}"
        )
        for field in profile.fields:
            marker = " " if field.enabled else "-"
            print(f"  {marker} {field.content_type}.{field.field_name}")
    return 0


async def _handle_index(args: argparse.Namespace, components: dict[str, Any]) -> int:
    profile = await _resolve_profile(components, args.profile)
    runner = components["job_runner"]
    job_type = JobType.REINDEX if args.reindex else JobType.INDEX

    print(f"Indexing profile {profile.slug} ({job_type.value})...")
    job = await runner.submit(profile.id, job_type)
    await runner.wait_idle()

    finished = await runner.get_job(job.id)
    if finished is None:
        print(f"Job {job.id} disappeared.", file=sys.stderr)
        return 1

    print(f"  Job:        {finished.id}")
    print(f"  Status:     {finished.status.value}")
    print(f"  Processed:  {finished.processed_items}")
    print(f"  Failed:     {finished.failed_items}")
    if finished.error_message:
        print(f"  Error:      {finished.error_message}")
    return 0 if finished.status == JobStatus.COMPLETED else 1


async def _handle_search(args: argparse.Namespace, components: dict[str, Any]) -> int:
    profile = await _resolve_profile(components, args.profile)
    options = SearchOptions(
        profile_id=profile.id,
        content_type=args.content_type,
        k=args.k,
        distance_metric=args.metric or profile.distance_metric.value,
        min_similarity=args.min_similarity,
        log_query=not args.no_log,
    )
    hits = await components["query_engine"].search(args.query, options, profile=profile)
    if not hits:
        print("No results.")
        return 0
    for rank, hit in enumerate(hits, start=1):
        score = f"{hit.similarity_score:.4f}" if hit.similarity_score is not None else "-"
        title = hit.metadata.get("title") or ""
        locale = f" [{hit.locale}]" if hit.locale else ""
        print(
            f"{rank:>3}. {score:>8}  d={hit.distance:.4f}  "
            f"{hit.content_type}/{hit.content_id} {hit.field_name}{locale}  {title}"
        )
    return 0


async def _handle_stats(args: argparse.Namespace, components: dict[str, Any]) -> int:
    vector_store = components["vector_store"]
    if args.profile:
        profile = await _resolve_profile(components, args.profile)
        print(f"Vectors for {profile.slug}: {await vector_store.count(profile.id)}")
        return 0

    print("Vector Statistics")
    print("=" * 40)
    print(f"  Total vectors:  {await vector_store.count()}")
    for profile in await components["profile_registry"].list():
        print(f"    {profile.slug:<24} {await vector_store.count(profile.id)}")
    return 0


async def _handle_history(args: argparse.Namespace, components: dict[str, Any]) -> int:
    profile_id = None
    if args.profile:
        profile_id = (await _resolve_profile(components, args.profile)).id
    entries = await components["query_log"].get_query_history(
        profile_id=profile_id, limit=args.limit, offset=args.offset
    )
    if not entries:
        print("No searches recorded.")
        return 0
    for entry in entries:
        when = entry.created_at.isoformat() if entry.created_at else "?"
        print(f"{when}  k={entry.k}  {entry.query_text!r}  ({len(entry.results)} results)")
        for result in entry.results:
            print(f"    {result.position:>3}. {result.content_type}/{result.content_id} {result.field_name}")
    return 0


_HANDLERS = {
    "init-db": _handle_init_db,
    "profiles": _handle_profiles,
    "index": _handle_index,
    "search": _handle_search,
    "stats": _handle_stats,
    "history": _handle_history,
}


async def run_command(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Dispatch *args* to its handler; domain errors become exit code 1."""
    handler = _HANDLERS[args.command]
    try:
        return await handler(args, components)
    except ContentVecError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    # Deferred: importing main configures logging and builds the app.
    from contentvec.main import open_components

    async with open_components(app_settings) as components:
        return await run_command(args, components)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the operator CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m contentvec.cli",
        description="Manage contentvec profiles, indexing and search.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("init-db", help="Create the vector extension, tables and indexes")
    subparsers.add_parser("profiles", help="List embedding profiles")

    index_parser = subparsers.add_parser("index", help="Index a profile and wait for the job")
    index_parser.add_argument("profile", help="Profile slug, name or id")
    index_parser.add_argument("--reindex", action="store_true", help="Record the job as a reindex")

    search_parser = subparsers.add_parser("search", help="Semantic search within one profile")
    search_parser.add_argument("profile", help="Profile slug, name or id")
    search_parser.add_argument("query", help="Natural-language query text")
    search_parser.add_argument("-k", type=int, default=10, help="Number of results (default: 10)")
    search_parser.add_argument(
        "--metric", choices=["cosine", "l2", "dot"], default=None,
        help="Distance metric (default: the profile's own)",
    )
    search_parser.add_argument("--content-type", dest="content_type", default=None)
    search_parser.add_argument("--min-similarity", dest="min_similarity", type=float, default=None)
    search_parser.add_argument(
        "--no-log", dest="no_log", action="store_true", help="Do not record the search in history"
    )

    stats_parser = subparsers.add_parser("stats", help="Count stored vectors")
    stats_parser.add_argument("--profile", default=None)

    history_parser = subparsers.add_parser("history", help="Show recent searches")
    history_parser.add_argument("--profile", default=None)
    history_parser.add_argument("--limit", type=int, default=20)
    history_parser.add_argument("--offset", type=int, default=0)

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    try:
        exit_code = asyncio.run(_run(args, app_settings))
    except ContentVecError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
