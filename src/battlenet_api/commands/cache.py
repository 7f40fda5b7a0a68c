"""Cache commands -- inspect and prune the response cache."""

from __future__ import annotations

import typer

from battlenet_api.output import info, print_table, success


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("stats")
def cache_stats() -> None:
    """Show the number of cached results, their size on disk and the cache directory."""
    from battlenet_api.cache import ResponseCache
    from battlenet_api.config import get_cache_dir

    with ResponseCache(get_cache_dir()) as cache:
        stats = cache.stats()
    print_table(
        ["entries", "bytes", "directory"],
        [[str(stats["size"]), str(stats["volume"]), stats["directory"]]],
        title="Response cache",
    )


@cache_app.command("clear")
def cache_clear() -> None:
    """Delete every cached result."""
    from battlenet_api.cache import ResponseCache
    from battlenet_api.config import get_cache_dir

    with ResponseCache(get_cache_dir()) as cache:
        removed = cache.clear()
    success(f"Removed {removed} cached result(s).")


@cache_app.command("forget")
def cache_forget(
    method: str = typer.Argument(help="Operation name whose cached result should be dropped."),
) -> None:
    """Drop the cached result of one operation, e.g. ``getRealmStatus``."""
    from battlenet_api.cache import ResponseCache, cache_key
    from battlenet_api.config import get_cache_dir

    key = cache_key(method)
    with ResponseCache(get_cache_dir()) as cache:
        removed = cache.forget(key)
    if removed:
        success(f"Forgot {key}")
    else:
        info(f"Nothing cached under {key}")
