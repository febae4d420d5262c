"""字节数格式化。"""

_UNITS = ("KB", "MB", "GB", "TB")


def format_size(num_bytes: int) -> str:
    """``4`` → ``4 bytes``，``1536`` → ``1.5KB``，``100 * 1024 ** 2`` → ``100MB``。"""
    if num_bytes < 1024:
        return f"{num_bytes} bytes"
    value = float(num_bytes)
    unit = _UNITS[0]
    for unit in _UNITS:
        value /= 1024
        if value < 1024:
            break
    return f"{value:.1f}".rstrip("0").rstrip(".") + unit
