from typing import Optional


def format_brl(cents: Optional[int]) -> str:
    """Format integer cents as Brazilian reais, e.g. 123456 -> 'R$ 1.234,56'."""
    if cents is None:
        return "R$ 0,00"
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(int(cents)), 100)
    grouped = f"{reais:,}".replace(",", ".")
    return f"{sign}R$ {grouped},{centavos:02d}"
