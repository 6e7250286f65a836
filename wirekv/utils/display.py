def render_bytes(data: bytes) -> str:
    """Text for a payload; falls back to a bytes literal when not UTF-8."""
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError:
        return repr(bytes(data))
