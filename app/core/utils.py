def parse_record_id(value: str | int | None) -> int | None:
    """
    Parse an id claim into a database primary key

    Token claims may carry ids as numbers or numeric strings.

    Args:
        value (str | int | None): The claimed id

    Returns:
        record_id (int | None): The primary key, or None if the value can't be one
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value

    try:
        return int(str(value).strip())
    except ValueError:
        return None
