import pytest

from k8scrd.templating import TemplateExecError, TemplateParseError, TemplateRenderer, translate_dot_references


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


def test__TemplateRenderer__renders_go_style_references(renderer: TemplateRenderer) -> None:
    document = renderer.render("kind: Widget\nname: {{.name}}\n", {"name": "alpha"})
    assert document == "kind: Widget\nname: alpha\n"


def test__TemplateRenderer__is_deterministic(renderer: TemplateRenderer) -> None:
    template = "a: {{ .a }}\nb: {{ b }}\n"
    attributes = {"a": "1", "b": "2"}
    assert renderer.render(template, attributes) == renderer.render(template, attributes) == "a: 1\nb: 2\n"


def test__TemplateRenderer__converts_values_to_strings(renderer: TemplateRenderer) -> None:
    assert renderer.render("replicas: {{ .replicas }}", {"replicas": 3}) == "replicas: 3"


def test__TemplateRenderer__non_identifier_keys_via_attributes(renderer: TemplateRenderer) -> None:
    assert renderer.render('{{ attributes["app-name"] }}', {"app-name": "web"}) == "web"


def test__TemplateRenderer__statements_and_filters(renderer: TemplateRenderer) -> None:
    template = "{% if .enabled == 'true' %}{{ .name | upper }}{% endif %}"
    assert renderer.render(template, {"enabled": "true", "name": "alpha"}) == "ALPHA"


def test__TemplateRenderer__missing_attribute_is_exec_error(renderer: TemplateRenderer) -> None:
    with pytest.raises(TemplateExecError) as excinfo:
        renderer.render("name: {{.name}}", {"other": "x"})
    assert "attribute 'name' is not set" in str(excinfo.value)


def test__TemplateRenderer__none_attributes_without_placeholders(renderer: TemplateRenderer) -> None:
    assert renderer.render("kind: Widget\n", None) == "kind: Widget\n"


def test__TemplateRenderer__none_attributes_with_placeholders(renderer: TemplateRenderer) -> None:
    with pytest.raises(TemplateExecError):
        renderer.render("{{ .name }}", None)


def test__TemplateRenderer__malformed_template_is_parse_error(renderer: TemplateRenderer) -> None:
    with pytest.raises(TemplateParseError) as excinfo:
        renderer.render("{{.name", {"name": "alpha"})
    assert excinfo.value.message
    assert excinfo.value.message in str(excinfo.value)


def test__translate_dot_references__leaves_other_dots_alone() -> None:
    assert translate_dot_references("a.b {{ .x }}") == 'a.b {{ attributes["x"] }}'
    assert translate_dot_references("{{ foo.bar }}") == "{{ foo.bar }}"
    assert translate_dot_references("{{ 1.5 }}") == "{{ 1.5 }}"
    assert translate_dot_references('{{ " .x" ~ .y }}') == '{{ " .x" ~ attributes["y"] }}'
    assert translate_dot_references("{{- .x -}}") == '{{- attributes["x"] -}}'


def test__TemplateRenderer__dot_references_to_reserved_names(renderer: TemplateRenderer) -> None:
    attributes = {"true": "yes", "none": "nothing", "attributes": "own", "items": "three"}
    template = "{{ .true }} {{ .none }} {{ .attributes }} {{ .items }}"
    assert renderer.render(template, attributes) == "yes nothing own three"


def test__TemplateRenderer__attributes_map_is_not_shadowed(renderer: TemplateRenderer) -> None:
    assert renderer.render('{{ attributes["attributes"] }}', {"attributes": "own"}) == "own"


def test__TemplateRenderer__missing_dict_method_name_is_exec_error(renderer: TemplateRenderer) -> None:
    with pytest.raises(TemplateExecError) as excinfo:
        renderer.render("{{ .items }}", {"name": "alpha"})
    assert "attribute 'items' is not set" in str(excinfo.value)
