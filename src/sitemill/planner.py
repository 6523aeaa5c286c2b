"""Batch planner — split a record count into query pages and documents.

Two independent limits apply to every source:

- the record source only returns ``batch_size`` records per query page, and
- a sitemap document may hold at most ``max_per_document`` URLs.

``plan_batches`` turns a total count into an ordered sequence of
:class:`BatchWindow` objects.  Each window names the document it feeds and
the ``offset``/``limit`` of the page to fetch.  Windows partition
``[0, total)`` exactly once, in ascending order.

Batches are distributed across documents with floor division, so when the
batch count does not divide evenly the extra batches land on the trailing
documents::

    >>> [(w.document, w.batch) for w in plan_batches(5000, 1000, 2500)]
    [(1, 1), (1, 2), (2, 3), (2, 4), (2, 5)]

"""

from __future__ import annotations

from dataclasses import dataclass

from sitemill._errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class BatchWindow:
    """One query page and the document it belongs to.

    Attributes:
        document: 1-based document index.
        batch: 1-based batch index across the whole source.
        offset: Number of records to skip.
        limit: Number of records to fetch.

    """

    document: int
    batch: int
    offset: int
    limit: int

    @property
    def stop(self) -> int:
        """End of the window (exclusive)."""
        return self.offset + self.limit


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def plan_batches(
    total: int,
    batch_size: int,
    max_per_document: int,
    *,
    drop_tail_record: bool = False,
) -> tuple[BatchWindow, ...]:
    """Plan the query windows for a source of ``total`` records.

    Args:
        total: Number of records the source will return.
        batch_size: Maximum records per query page.
        max_per_document: Maximum URLs per sitemap document.
        drop_tail_record: Reproduce the historical short-page limit of
            ``total - offset - 1``, which leaves out the last record of an
            undersized final page.

    Returns:
        Windows in fetch order.  A source with ``total <= batch_size``
        yields a single window ``(offset=0, limit=total)``, including the
        empty case.

    Raises:
        ConfigurationError: If either limit is smaller than one.
        ValueError: If ``total`` is negative.

    """
    if batch_size < 1 or max_per_document < 1:
        msg = (
            f"batch_size ({batch_size}) and max_per_document "
            f"({max_per_document}) must be positive"
        )
        raise ConfigurationError(msg)
    if total < 0:
        msg = f"total must not be negative, got {total}"
        raise ValueError(msg)

    if total <= batch_size:
        return (BatchWindow(document=1, batch=1, offset=0, limit=total),)

    num_batches = _ceil_div(total, batch_size)
    # Never plan a document that would receive no batch at all
    num_documents = min(_ceil_div(total, max_per_document), num_batches)

    windows: list[BatchWindow] = []
    for document in range(1, num_documents + 1):
        first = (document - 1) * num_batches // num_documents + 1
        last = document * num_batches // num_documents

        for batch in range(first, last + 1):
            offset = (batch - 1) * batch_size
            remaining = total - offset
            if remaining < batch_size:
                limit = remaining - 1 if drop_tail_record else remaining
            else:
                limit = batch_size
            windows.append(
                BatchWindow(document=document, batch=batch, offset=offset, limit=limit)
            )

    return tuple(windows)


def document_count(windows: tuple[BatchWindow, ...]) -> int:
    """Return the number of distinct documents a plan feeds."""
    return len({w.document for w in windows})
