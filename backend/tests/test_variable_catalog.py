from composer.services import variable_catalog


def test_every_token_is_unique_and_well_formed() -> None:
    tokens = [variable.token for variable in variable_catalog.VARIABLES]
    assert len(tokens) == len(set(tokens))
    for variable in variable_catalog.VARIABLES:
        assert variable.token == "{{" + variable.id + "}}"
        assert variable_catalog.TOKEN_PATTERN.fullmatch(variable.token)


def test_every_variable_belongs_to_a_known_category() -> None:
    category_ids = {category.id for category in variable_catalog.CATEGORIES}
    assert {variable.category for variable in variable_catalog.VARIABLES} <= category_ids


def test_only_the_services_table_is_structural() -> None:
    structural = [variable.token for variable in variable_catalog.VARIABLES if variable.structural]
    assert structural == [variable_catalog.SERVICES_TABLE_TOKEN]


def test_lookup_by_token_or_id() -> None:
    assert variable_catalog.get_variable("{{cliente_nome}}").label == "Nome do Cliente"
    assert variable_catalog.get_variable("valor_total").category == "valores"
    assert variable_catalog.get_variable("{{campo_inexistente}}") is None


def test_search_matches_label_and_token_case_insensitively() -> None:
    by_label = variable_catalog.search_variables("EXTENSO")
    assert [variable.id for variable in by_label] == ["valor_total_extenso"]

    by_token = variable_catalog.search_variables("{{cliente_")
    assert by_token and all(variable.category == "cliente" for variable in by_token)

    assert len(variable_catalog.search_variables("  ")) == len(variable_catalog.VARIABLES)


def test_grouping_keeps_catalog_order_and_drops_empty_groups() -> None:
    groups = variable_catalog.grouped_variables()
    assert [group.category.id for group in groups] == [category.id for category in variable_catalog.CATEGORIES]

    filtered = variable_catalog.grouped_variables("total")
    assert {group.category.id for group in filtered} == {"valores", "servicos"}


def test_label_tokens_for_preview_without_data() -> None:
    assert variable_catalog.label_tokens("Cliente: {{cliente_nome}}") == "Cliente: [Nome do Cliente]"
    assert variable_catalog.label_tokens("{{campo_inexistente}}") == "{{campo_inexistente}}"
