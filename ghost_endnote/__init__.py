"""
Top-level package for the Ghost endnote migration utility.

This package bundles the components required to fetch a set of Ghost
posts, insert or replace an endnote block in their content, and write them
back through the Admin API.  Modules are split into subpackages:

* :mod:`ghost_endnote.extractors` – paginated post discovery
* :mod:`ghost_endnote.parsers` – endnote upsert for Lexical and HTML content
* :mod:`ghost_endnote.migrators` – Ghost Admin API client
* :mod:`ghost_endnote.models` – post records and content representations
* :mod:`ghost_endnote.utils` – error kinds, run ledger and pacing

Each layer has no direct knowledge of configuration or execution strategy;
orchestration is handled in :mod:`ghost_endnote.migration_tool`.
"""

__version__ = "0.1.0"
