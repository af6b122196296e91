import pytest

from catalog.utils.formatters import format_brl


@pytest.mark.parametrize(
    "cents, expected",
    [
        (0, "R$ 0,00"),
        (5, "R$ 0,05"),
        (15000, "R$ 150,00"),
        (123456, "R$ 1.234,56"),
        (123456789, "R$ 1.234.567,89"),
        (-2550, "-R$ 25,50"),
        (None, "R$ 0,00"),
    ],
)
def test_format_brl(cents, expected):
    assert format_brl(cents) == expected
