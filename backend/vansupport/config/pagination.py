PAGE_SIZES = (10, 25, 50, 100)
DEFAULT_PAGE_SIZE = 25


def normalize_pagination(page_raw, limit_raw):
    """Return (page, limit) from raw query values.

    Never raises: an unparsable or < 1 page becomes 1, and any limit that is
    not one of PAGE_SIZES falls back to DEFAULT_PAGE_SIZE (no clamping to the
    nearest size).
    """
    try:
        page = int(page_raw) if page_raw is not None else 1
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(limit_raw) if limit_raw is not None else DEFAULT_PAGE_SIZE
    except (TypeError, ValueError):
        limit = DEFAULT_PAGE_SIZE
    page = max(1, page)
    if limit not in PAGE_SIZES:
        limit = DEFAULT_PAGE_SIZE
    return page, limit
