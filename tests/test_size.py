"""Unit tests for size.py."""

from seafload.size import Size


class TestSize:
    def test_bytes(self) -> None:
        assert str(Size(0)) == "0.00 B"
        assert str(Size(1023)) == "1023.00 B"

    def test_units(self) -> None:
        assert str(Size(1536)) == "1.50 KiB"
        assert str(Size(5 * 1024 ** 3)) == "5.00 GiB"

    def test_formatting_does_not_change_the_size(self) -> None:
        size = Size(2048)
        str(size)
        assert size.size == 2048

