"""
Top-level package for the WordPress → Haven import utility.

This package bundles all components required to read a WordPress WXR
export, resolve post authors to Haven users, download the media the posts
reference, convert WordPress block HTML to Haven's markdown content and
create the posts in chronological order.  Modules are split into
subpackages:

* :mod:`haven_migrator.extractors` – WXR parsing of posts and attachments
* :mod:`haven_migrator.parsers` – HTML to Haven markdown conversion
* :mod:`haven_migrator.migrators` – Haven API client and media cache
* :mod:`haven_migrator.utils` – logging, errors, pre-flight checks, authors

Orchestration lives in :mod:`haven_migrator.migration_tool`.
"""
