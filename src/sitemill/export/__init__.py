"""Sitemap document files on disk.

Streams URL entries into size-capped urlset and index documents and
defines the filename grammar those documents follow on disk.
"""

from sitemill.export.writer import DocumentWriter, WrittenDocument

__all__ = ["DocumentWriter", "WrittenDocument"]
