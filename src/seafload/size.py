class Size:
    """A size in bytes."""

    UNITS = ['B', 'KiB', 'MiB', 'GiB', 'TiB', 'PiB', 'EiB', 'ZiB', 'YiB']

    def __init__(self, size: int) -> None:
        """Initialize the size.

        Args:
            size (int): The size in bytes.
        """
        self.size = size

    def __str__(self) -> str:
        """Return the size as a human readable string, e.g. ``1.50 KiB``.

        Returns:
            str: The size as a string.
        """
        size = float(self.size)
        unit = 0
        while size >= 1024 and unit < len(Size.UNITS) - 1:
            size /= 1024
            unit += 1
        return f"{size:.2f} {Size.UNITS[unit]}"
