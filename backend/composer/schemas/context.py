# backend/composer/schemas/context.py
"""Business data merged into a template (proposal, client, services, company)."""
import math
import re
from datetime import date, datetime
from typing import Annotated, Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator

_NUMBER_NOISE = re.compile(r"[^0-9,.\-]")
# "1.500", "1.234.567": pt-BR thousands grouping without decimals
_THOUSANDS_ONLY = re.compile(r"-?[1-9]\d{0,2}(?:\.\d{3})+")


def parse_number(value: Any) -> float:
    """Lenient number parsing: numbers, "12.5", "1.234,56", "R$ 10". Anything else is 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0
    text = _NUMBER_NOISE.sub("", str(value))
    if not text:
        return 0.0
    if "," in text and "." in text:
        # The right-most separator is the decimal one
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".")
    elif _THOUSANDS_ONLY.fullmatch(text):
        text = text.replace(".", "")
    try:
        number = float(text)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def parse_optional_number(value: Any) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_number(value)


SafeNumber = Annotated[float, BeforeValidator(parse_number)]
OptionalNumber = Annotated[Optional[float], BeforeValidator(parse_optional_number)]
DateLike = Optional[Union[datetime, date, str]]


class _ContextModel(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True, populate_by_name=True)


class ProposalData(_ContextModel):
    numero: Optional[str] = None
    titulo: Optional[str] = None
    created_at: DateLike = None
    data_vencimento: DateLike = None
    status: Optional[str] = None
    subtotal: OptionalNumber = None
    desconto: SafeNumber = 0.0 # percent
    acrescimo: SafeNumber = 0.0 # percent
    valor_total: OptionalNumber = None
    observacoes: Optional[str] = None
    condicoes_pagamento: Optional[str] = None
    prazo_entrega: Optional[str] = None


class ClientData(_ContextModel):
    nome: Optional[str] = None
    empresa: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    endereco: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None
    cnpj: Optional[str] = None
    cpf: Optional[str] = None


class ServiceLine(_ContextModel):
    nome: str = ""
    quantidade: SafeNumber = 0.0
    valor_base: OptionalNumber = None
    valor_unitario: OptionalNumber = None
    valor_personalizado: OptionalNumber = None

    @property
    def unit_price(self) -> float:
        for candidate in (self.valor_personalizado, self.valor_base, self.valor_unitario):
            if candidate is not None:
                return candidate
        return 0.0

    @property
    def line_total(self) -> float:
        return round(self.quantidade * self.unit_price, 2)


class CompanyData(_ContextModel):
    nome: Optional[str] = None
    endereco: Optional[str] = None
    telefone: Optional[str] = None
    email: Optional[str] = None
    cnpj: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None


class DataContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    proposal: ProposalData = Field(default_factory=ProposalData, validation_alias=AliasChoices("proposal", "proposta"))
    client: ClientData = Field(default_factory=ClientData, validation_alias=AliasChoices("client", "cliente"))
    services: List[ServiceLine] = Field(default_factory=list, validation_alias=AliasChoices("services", "servicos"))
    company: CompanyData = Field(default_factory=CompanyData, validation_alias=AliasChoices("company", "empresa"))

    @field_validator("proposal", "client", "company", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return {} if v is None else v

    @field_validator("services", mode="before")
    @classmethod
    def none_as_no_services(cls, v):
        return [] if v is None else v
