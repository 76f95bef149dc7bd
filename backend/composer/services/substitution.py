# backend/composer/services/substitution.py
"""
Merge-field substitution.

Tokens look like ``{{cliente_nome}}``. Content is scanned once, left to right,
and every token is replaced by the value resolved from a DataContext. Values
are never re-scanned, so text that already went through substitution can be
substituted again safely; braces inside data are broken up so a value
can never turn into a token. Tokens without a resolver, or whose data is missing,
are left exactly as written.
"""
import logging
import re
from datetime import date
from typing import Callable, Dict, List, Optional, Union

from markupsafe import Markup, escape as escape_html

from composer.schemas.context import DataContext
from composer.services import financials as fin
from composer.services.markup import jinja_env
from composer.services.variable_catalog import TOKEN_PATTERN, get_variable

logger = logging.getLogger(__name__)

ResolvedValue = Optional[Union[str, Markup]]


_BRACE_RUN = re.compile(r"([{}])(?=\1)")


def neutralise_braces(text: str) -> str:
    """Break up "{{" and "}}" in data so a value can never form a token."""
    return _BRACE_RUN.sub(r"\1 ", text)


def _text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class BoundContext:
    """A DataContext with its derived values (financials, formatted strings) computed once."""

    def __init__(self, engine: "SubstitutionEngine", context: DataContext):
        self.engine = engine
        self.context = context
        self._values: Dict[str, ResolvedValue] = {}
        self._financials_done = False
        self._financials: Optional[fin.ProposalFinancials] = None

    @property
    def financials(self) -> Optional[fin.ProposalFinancials]:
        if not self._financials_done:
            self._financials = fin.calculate_proposal_financials(self.context)
            self._financials_done = True
        return self._financials

    def today(self) -> date:
        return self.engine.today()

    def resolve(self, token_id: str) -> ResolvedValue:
        if token_id in self._values:
            return self._values[token_id]
        resolver = self.engine.resolvers.get(token_id)
        value: ResolvedValue = None
        if resolver is not None:
            try:
                value = resolver(self)
            except Exception:
                logger.warning("Could not resolve token {{%s}}; leaving it in place", token_id, exc_info=True)
                value = None
        self._values[token_id] = value
        return value


# --- Resolvers ---

def _client_field(name: str) -> Callable[[BoundContext], ResolvedValue]:
    return lambda bound: _text(getattr(bound.context.client, name))


def _proposal_field(name: str) -> Callable[[BoundContext], ResolvedValue]:
    return lambda bound: _text(getattr(bound.context.proposal, name))


def _company_field(name: str) -> Callable[[BoundContext], ResolvedValue]:
    return lambda bound: _text(getattr(bound.context.company, name))


def _proposal_date(name: str) -> Callable[[BoundContext], ResolvedValue]:
    return lambda bound: fin.format_date(getattr(bound.context.proposal, name))


def _money(attribute: str, formatter: Callable[[float], str] = fin.format_currency) -> Callable[[BoundContext], ResolvedValue]:
    def resolve(bound: BoundContext) -> ResolvedValue:
        financials = bound.financials
        if financials is None:
            return None
        return formatter(getattr(financials, attribute))
    return resolve


def _services_list(bound: BoundContext) -> ResolvedValue:
    services = bound.context.services
    if not services:
        return None
    return "\n".join(
        f"• {service.nome} ({fin.format_quantity(service.quantidade)}x) - {fin.format_currency(service.line_total)}"
        for service in services
    )


def _services_table(bound: BoundContext) -> ResolvedValue:
    services = bound.context.services
    if not services:
        return None
    lines = [
        {
            "name": neutralise_braces(service.nome),
            "quantity": fin.format_quantity(service.quantidade),
            "unit_price": fin.format_currency(service.unit_price),
            "total": fin.format_currency(service.line_total),
        }
        for service in services
    ]
    financials = bound.financials
    totals = [("Subtotal", fin.format_currency(financials.subtotal))]
    if financials.discount_amount:
        totals.append((f"Desconto ({fin.format_percentage(financials.discount_percentage)})",
                       "- " + fin.format_currency(financials.discount_amount)))
    if financials.surcharge_amount:
        totals.append((f"Acréscimo ({fin.format_percentage(financials.surcharge_percentage)})",
                       "+ " + fin.format_currency(financials.surcharge_amount)))
    template = jinja_env.get_template("services_table.html")
    return Markup(template.render(lines=lines, totals=totals, total=fin.format_currency(financials.total)))


DEFAULT_RESOLVERS: Dict[str, Callable[[BoundContext], ResolvedValue]] = {
    **{f"cliente_{name}": _client_field(name) for name in (
        "nome", "empresa", "email", "telefone", "endereco", "cidade", "estado", "cnpj", "cpf",
    )},
    "proposta_numero": _proposal_field("numero"),
    "proposta_titulo": _proposal_field("titulo"),
    "proposta_data": _proposal_date("created_at"),
    "proposta_validade": _proposal_date("data_vencimento"),
    "proposta_status": _proposal_field("status"),
    "valor_subtotal": _money("subtotal"),
    "valor_desconto": _money("discount_amount"),
    "valor_desconto_percentual": _money("discount_percentage", fin.format_percentage),
    "valor_acrescimo": _money("surcharge_amount"),
    "valor_acrescimo_percentual": _money("surcharge_percentage", fin.format_percentage),
    "valor_total": _money("total"),
    "valor_total_extenso": _money("total", fin.amount_in_words),
    "servicos_lista": _services_list,
    "servicos_tabela": _services_table,
    "servicos_total": lambda bound: str(len(bound.context.services)),
    **{f"empresa_{name}": _company_field(name) for name in ("nome", "endereco", "telefone", "email", "cnpj")},
    "observacoes": _proposal_field("observacoes"),
    "condicoes_pagamento": _proposal_field("condicoes_pagamento"),
    "prazo_entrega": _proposal_field("prazo_entrega"),
    "data_atual": lambda bound: fin.format_date(bound.today()),
}


class SubstitutionEngine:
    def __init__(
        self,
        today: Callable[[], date] = date.today,
        resolvers: Optional[Dict[str, Callable[[BoundContext], ResolvedValue]]] = None,
    ):
        self.today = today
        self.resolvers = dict(DEFAULT_RESOLVERS if resolvers is None else resolvers)

    def bind(self, context: Union[DataContext, BoundContext, dict, None]) -> BoundContext:
        if isinstance(context, BoundContext):
            return context
        if context is None:
            context = DataContext()
        elif isinstance(context, dict):
            context = DataContext.model_validate(context)
        return BoundContext(self, context)

    def substitute(
        self,
        content: str,
        context: Union[DataContext, BoundContext, dict, None],
        *,
        escape: bool = False,
        label_missing: bool = False,
    ) -> str:
        """
        Replace every token in `content`.

        With `escape=True` the result is markup: literal text and scalar values
        are HTML-escaped with newlines turned into <br>, structural values
        (the services table) are inserted as generated.
        With `label_missing=True` unresolved catalog tokens are shown as "[Label]".
        """
        if not content:
            return Markup("") if escape else (content or "")
        if "{{" not in content:
            return Markup(_as_markup(content)) if escape else content

        bound = self.bind(context)
        pieces: List[str] = []
        cursor = 0
        for match in TOKEN_PATTERN.finditer(content):
            literal = content[cursor:match.start()]
            pieces.append(_as_markup(literal) if escape else literal)
            pieces.append(self._replacement(bound, match.group(1), match.group(0), escape, label_missing))
            cursor = match.end()
        tail = content[cursor:]
        pieces.append(_as_markup(tail) if escape else tail)

        result = "".join(pieces)
        return Markup(result) if escape else result

    def _replacement(self, bound: BoundContext, token_id: str, token: str, escape: bool, label_missing: bool) -> str:
        value = bound.resolve(token_id)
        if value is None:
            variable = get_variable(token_id) if label_missing else None
            text = f"[{variable.label}]" if variable else token
            return _as_markup(text) if escape else text
        if isinstance(value, Markup):
            return str(value)
        value = neutralise_braces(value)
        return _as_markup(value) if escape else value

    def find_tokens(self, content: str) -> List[str]:
        """Distinct tokens in order of first appearance."""
        seen: List[str] = []
        for match in TOKEN_PATTERN.finditer(content or ""):
            if match.group(0) not in seen:
                seen.append(match.group(0))
        return seen

    def unresolved_tokens(self, content: str, context: Union[DataContext, BoundContext, dict, None]) -> List[str]:
        bound = self.bind(context)
        return [token for token in self.find_tokens(content) if bound.resolve(token[2:-2]) is None]


def _as_markup(text: str) -> str:
    return str(escape_html(text)).replace("\r\n", "\n").replace("\n", "<br>")


engine = SubstitutionEngine()


def substitute(content: str, context, *, escape: bool = False, label_missing: bool = False) -> str:
    return engine.substitute(content, context, escape=escape, label_missing=label_missing)


def find_tokens(content: str) -> List[str]:
    return engine.find_tokens(content)


def unresolved_tokens(content: str, context) -> List[str]:
    return engine.unresolved_tokens(content, context)
