"""Developer activity reporter.

Modules:
    config: environment configuration and language mapping
    logger: logging setup and exception hierarchy
    editor: editor context accessors
    state: snapshots, view window and change detection
    git: version-control queries
    ignore_cache: memoized ignore decisions
    repository: memoized workspace repository resolution
    cancellation: single-slot superseding task scope
    dispatcher: report POSTs to the collector
    poller: the polling loop
"""
