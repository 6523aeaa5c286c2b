"""Sitemill — partitioned sitemap generation for large record sets.

Splits record sources of any size into size-capped sitemap documents,
fetching them page by page, and ties the documents together with a
sitemap index.  Later runs can append only new records.

Quick start::

    from pathlib import Path
    import sitemill

    config = sitemill.SitemillConfig(
        document_root=Path("public"),
        base_url="https://example.com",
    )
    generator = sitemill.SitemapGenerator(config)
    generator.add(sitemill.SQLiteTable("app.db", "posts"))
    generator.clean().generate()

Config-driven::

    sitemill.generate("my-site/")                # reads my-site/sitemill.yaml
    sitemill.generate("my-site/", update=True)   # incremental
    sitemill.clean("my-site/")

"""

__version__ = "0.1.0-dev"
__all__ = [
    "RecordList",
    "SQLiteTable",
    "SitemapGenerator",
    "SitemillConfig",
    "UpdateTracker",
    "__version__",
    "clean",
    "generate",
    "plan_batches",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import sitemill`` fast while providing a clean top-level API.
    """
    if name == "SitemillConfig":
        from sitemill.config import SitemillConfig

        return SitemillConfig

    if name == "SitemapGenerator":
        from sitemill.generator import SitemapGenerator

        return SitemapGenerator

    if name == "plan_batches":
        from sitemill.planner import plan_batches

        return plan_batches

    if name == "UpdateTracker":
        from sitemill.tracker import UpdateTracker

        return UpdateTracker

    if name == "RecordList":
        from sitemill.sources.memory import RecordList

        return RecordList

    if name == "SQLiteTable":
        from sitemill.sources.sqlite import SQLiteTable

        return SQLiteTable

    if name == "generate":
        from sitemill.app import generate

        return generate

    if name == "clean":
        from sitemill.app import clean

        return clean

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
