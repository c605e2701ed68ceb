def bucket_from_path(path: str) -> str:
    """Return the first non-empty segment of a request path.

    Used only as a metric label, so everything after the first segment (the
    object key) is dropped. ``"/core-data/Cheques/x"`` gives ``"core-data"``.
    """
    start = 0
    while start < len(path) and path[start] == "/":
        start += 1
    end = path.find("/", start)
    if end == -1:
        end = len(path)
    return path[start:end]
