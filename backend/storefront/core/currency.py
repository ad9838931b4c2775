"""Currency display helpers for amounts held in minor units."""

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "CAD": "CA$",
    "AUD": "A$",
    "MXN": "MX$",
    "BRL": "R$",
    "EUR": "€",
    "GBP": "£",
    "CHF": "CHF ",
    "SEK": "kr ",
    "NOK": "kr ",
    "DKK": "kr ",
    "JPY": "¥",
    "KRW": "₩",
    "INR": "₹",
}

# No cents/pence: amounts are already whole units
ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "BIF", "CLP", "DJF", "GNF", "JPY", "KMF", "KRW", "MGA",
        "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
    }
)


def format_cents(amount_cents: int, currency: str = "USD") -> str:
    """Format an integer minor-unit amount for display, e.g. 2500 -> "$25.00"."""
    code = currency.upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    if code in ZERO_DECIMAL_CURRENCIES:
        return f"{symbol}{amount_cents:,}"
    return f"{symbol}{amount_cents / 100:,.2f}"
