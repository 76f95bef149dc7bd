# backend/composer/services/variable_catalog.py
"""Static registry of the merge tokens offered by the variable picker."""
import re
from typing import Dict, List, Optional

from composer.schemas.variable import VariableCategory, VariableDefinition, VariableGroup

SERVICES_TABLE_TOKEN = "{{servicos_tabela}}"
TOKEN_PATTERN = re.compile(r"\{\{([A-Za-z_][A-Za-z0-9_]*)\}\}")

CATEGORIES: List[VariableCategory] = [
    VariableCategory(id="cliente", label="Dados do Cliente", color="#2196F3"),
    VariableCategory(id="proposta", label="Dados da Proposta", color="#4CAF50"),
    VariableCategory(id="valores", label="Valores Financeiros", color="#9C27B0"),
    VariableCategory(id="servicos", label="Serviços", color="#F44336"),
    VariableCategory(id="empresa", label="Dados da Empresa", color="#FF9800"),
    VariableCategory(id="outros", label="Outros", color="#607D8B"),
]

# (id, label, category)
_ENTRIES = [
    ("cliente_nome", "Nome do Cliente", "cliente"),
    ("cliente_empresa", "Empresa do Cliente", "cliente"),
    ("cliente_email", "Email do Cliente", "cliente"),
    ("cliente_telefone", "Telefone do Cliente", "cliente"),
    ("cliente_endereco", "Endereço do Cliente", "cliente"),
    ("cliente_cidade", "Cidade do Cliente", "cliente"),
    ("cliente_estado", "Estado do Cliente", "cliente"),
    ("cliente_cnpj", "CNPJ do Cliente", "cliente"),
    ("cliente_cpf", "CPF do Cliente", "cliente"),
    ("proposta_numero", "Número da Proposta", "proposta"),
    ("proposta_titulo", "Título da Proposta", "proposta"),
    ("proposta_data", "Data da Proposta", "proposta"),
    ("proposta_validade", "Data de Validade", "proposta"),
    ("proposta_status", "Status da Proposta", "proposta"),
    ("valor_subtotal", "Subtotal", "valores"),
    ("valor_desconto", "Valor do Desconto", "valores"),
    ("valor_desconto_percentual", "Percentual de Desconto", "valores"),
    ("valor_acrescimo", "Valor do Acréscimo", "valores"),
    ("valor_acrescimo_percentual", "Percentual de Acréscimo", "valores"),
    ("valor_total", "Valor Total", "valores"),
    ("valor_total_extenso", "Valor Total por Extenso", "valores"),
    ("servicos_lista", "Lista de Serviços", "servicos"),
    ("servicos_tabela", "Tabela de Serviços", "servicos"),
    ("servicos_total", "Total de Serviços", "servicos"),
    ("empresa_nome", "Nome da Empresa", "empresa"),
    ("empresa_endereco", "Endereço da Empresa", "empresa"),
    ("empresa_telefone", "Telefone da Empresa", "empresa"),
    ("empresa_email", "Email da Empresa", "empresa"),
    ("empresa_cnpj", "CNPJ da Empresa", "empresa"),
    ("observacoes", "Observações", "outros"),
    ("data_atual", "Data Atual", "outros"),
    ("condicoes_pagamento", "Condições de Pagamento", "outros"),
    ("prazo_entrega", "Prazo de Entrega", "outros"),
]

STRUCTURAL_IDS = frozenset({"servicos_tabela"})

VARIABLES: List[VariableDefinition] = [
    VariableDefinition(
        id=variable_id,
        label=label,
        token="{{" + variable_id + "}}",
        category=category,
        structural=variable_id in STRUCTURAL_IDS,
    )
    for variable_id, label, category in _ENTRIES
]

_BY_TOKEN: Dict[str, VariableDefinition] = {variable.token: variable for variable in VARIABLES}
_BY_ID: Dict[str, VariableDefinition] = {variable.id: variable for variable in VARIABLES}


def get_variable(token_or_id: str) -> Optional[VariableDefinition]:
    return _BY_TOKEN.get(token_or_id) or _BY_ID.get(token_or_id)


def search_variables(term: str) -> List[VariableDefinition]:
    """Case-insensitive match on label or token; a blank term returns everything."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(VARIABLES)
    return [v for v in VARIABLES if needle in v.label.lower() or needle in v.token.lower()]


def grouped_variables(term: str = "") -> List[VariableGroup]:
    matches = search_variables(term)
    groups = []
    for category in CATEGORIES:
        members = [v for v in matches if v.category == category.id]
        if members:
            groups.append(VariableGroup(category=category, variables=members))
    return groups


def label_tokens(content: str) -> str:
    """Replace every catalog token with "[Label]" for display without business data."""
    return TOKEN_PATTERN.sub(
        lambda match: f"[{_BY_ID[match.group(1)].label}]" if match.group(1) in _BY_ID else match.group(0),
        content,
    )
