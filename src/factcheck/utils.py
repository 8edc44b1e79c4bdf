"""Small helpers shared by the loader and the snapshot writer."""


def quote_sql_path(path: str) -> str:
    """Escape a file path for use inside a single-quoted DuckDB literal."""
    return path.replace("'", "''")
