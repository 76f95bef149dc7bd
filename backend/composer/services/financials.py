# backend/composer/services/financials.py
"""Proposal totals and the pt-BR formatting used by merge tokens."""
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Union

from composer.core.config import settings
from composer.schemas.context import DataContext, ServiceLine


@dataclass(frozen=True)
class ProposalFinancials:
    subtotal: float
    discount_percentage: float
    discount_amount: float
    surcharge_percentage: float
    surcharge_amount: float
    total: float


def calculate_services_subtotal(services: List[ServiceLine]) -> float:
    return round(sum(service.line_total for service in services), 2)


def calculate_proposal_financials(context: DataContext) -> Optional[ProposalFinancials]:
    """
    Subtotal, discount, surcharge and total for a proposal.
    Service lines win over stored amounts; without either there is nothing to report.
    """
    proposal = context.proposal
    discount_percentage = proposal.desconto or 0.0
    surcharge_percentage = proposal.acrescimo or 0.0

    if context.services:
        subtotal = calculate_services_subtotal(context.services)
        stored_total = None
    elif proposal.subtotal is not None or proposal.valor_total is not None:
        subtotal = round(proposal.subtotal or 0.0, 2)
        stored_total = proposal.valor_total
    else:
        return None

    discount_amount = round(subtotal * (discount_percentage / 100.0), 2)
    surcharge_amount = round(subtotal * (surcharge_percentage / 100.0), 2)

    if stored_total is not None:
        total = round(stored_total, 2)
    else:
        total = round(subtotal - discount_amount + surcharge_amount, 2)

    return ProposalFinancials(
        subtotal=subtotal,
        discount_percentage=discount_percentage,
        discount_amount=discount_amount,
        surcharge_percentage=surcharge_percentage,
        surcharge_amount=surcharge_amount,
        total=total,
    )


# --- pt-BR formatting ---

def format_decimal(value: float, places: int = 2) -> str:
    """1234.5 -> "1.234,50"."""
    formatted = f"{value:,.{places}f}"
    return formatted.replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency(value: float) -> str:
    return f"{settings.CURRENCY_SYMBOL} {format_decimal(value)}"


def format_percentage(value: float) -> str:
    return f"{format_decimal(value)}%"


def format_quantity(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return format_decimal(value).rstrip("0").rstrip(",")


def parse_date(value: Union[date, datetime, str, None]) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text, "%d/%m/%Y").date()
    except ValueError:
        return None


def format_date(value: Union[date, datetime, str, None]) -> Optional[str]:
    parsed = parse_date(value)
    return parsed.strftime("%d/%m/%Y") if parsed else None


# --- Amount in words (Brazilian Portuguese) ---

_UNITS = ["", "um", "dois", "três", "quatro", "cinco", "seis", "sete", "oito", "nove"]
_TEENS = ["dez", "onze", "doze", "treze", "quatorze", "quinze", "dezesseis", "dezessete", "dezoito", "dezenove"]
_TENS = ["", "dez", "vinte", "trinta", "quarenta", "cinquenta", "sessenta", "setenta", "oitenta", "noventa"]
_HUNDREDS = ["", "cento", "duzentos", "trezentos", "quatrocentos", "quinhentos", "seiscentos", "setecentos", "oitocentos", "novecentos"]

# (value, singular, plural)
_SCALES = [
    (1_000_000_000, "um bilhão", "bilhões"),
    (1_000_000, "um milhão", "milhões"),
    (1_000, "mil", "mil"),
]


def _below_thousand(number: int) -> str:
    if number == 0:
        return ""
    if number == 100:
        return "cem"
    parts = []
    hundreds, rest = divmod(number, 100)
    if hundreds:
        parts.append(_HUNDREDS[hundreds])
    if 10 <= rest < 20:
        parts.append(_TEENS[rest - 10])
    else:
        tens, units = divmod(rest, 10)
        if tens:
            parts.append(_TENS[tens])
        if units:
            parts.append(_UNITS[units])
    return " e ".join(parts)


def integer_in_words(number: int) -> str:
    if number == 0:
        return "zero"
    groups = []  # (words, group value)
    remainder = number
    for scale, singular, plural in _SCALES:
        count, remainder = divmod(remainder, scale)
        if count:
            groups.append((singular if count == 1 else f"{integer_in_words(count)} {plural}", count))
    if remainder:
        groups.append((_below_thousand(remainder), remainder))

    text = groups[0][0]
    for words, value in groups[1:]:
        # "mil e quinhentos" but "mil duzentos e cinquenta"
        joiner = " e " if value < 100 or value % 100 == 0 else " "
        text = f"{text}{joiner}{words}"
    return text


def amount_in_words(value: float) -> str:
    """180.0 -> "cento e oitenta reais"; 1.5 -> "um real e cinquenta centavos"."""
    cents_total = int(round(abs(value) * 100))
    reais, centavos = divmod(cents_total, 100)
    if reais == 0 and centavos == 0:
        return "zero reais"

    parts = []
    if reais:
        currency = "real" if reais == 1 else "reais"
        words = integer_in_words(reais)
        # "um milhão de reais", "dois mil reais"
        if reais % 1_000_000 == 0:
            currency = f"de {currency}"
        parts.append(f"{words} {currency}")
    if centavos:
        parts.append(f"{integer_in_words(centavos)} {'centavo' if centavos == 1 else 'centavos'}")
    return " e ".join(parts)
