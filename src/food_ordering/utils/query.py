"""Query helpers shared by the ordering repositories."""

PAGE_SIZE = 100


def fetch_all(queryset, page_size: int = PAGE_SIZE) -> list:
    """Collect every record matching a Protean queryset, page by page.

    Protean querysets return at most one page per ``all()`` call. Pages are
    taken in ``id`` order so offsets stay stable between calls.
    """
    queryset = queryset.order_by("id")
    records = []
    offset = 0
    while True:
        page = queryset.offset(offset).limit(page_size).all().items
        records.extend(page)
        if len(page) < page_size:
            return records
        offset += page_size
