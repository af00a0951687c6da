# tests/core/includes/test_resolver.py
"""
Testes do IncludeResolver.

Este módulo valida a resolução de diretivas (`incl`, `from_zk`, `from_env`)
sobre a árvore mesclada.

Os testes asseguram que:
- diretivas múltiplas e `<include>` malformado são rejeitados antes de
  qualquer consulta às fontes
- a política de "não encontrado" respeita `optional`, modo estrito e
  modo leniente, nessa ordem
- conteúdo importado é copiado, com `replace` e atributos da fonte
- includes encadeados são resolvidos antes de seguir para os irmãos
- toda chave `from_zk` é registrada, resolvida ou não
- a tabela de substituições é aplicada aos nós de texto

Invariantes:
    - A fonte de include nunca é compartilhada com a árvore resultante
"""

import pytest

try:
    from configweave.core.context import ProcessingContext
    from configweave.core.errors import (
        AmbiguousDirectiveError,
        CoordinationError,
        CoordinationFailureError,
        MalformedIncludeError,
        UnresolvedReferenceError,
    )
    from configweave.core.includes import IncludeResolver
    from configweave.core.tree import canonical_xml, parse_xml
except Exception as e:  # noqa: BLE001
    IncludeResolver = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o resolvedor de includes esteja disponível para os testes.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing include resolution modules. Implement:\n"
            "- src/configweave/core/includes/resolver.py (IncludeResolver)\n"
            "- src/configweave/core/errors.py (typed exceptions)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _resolve(xml, *, include_source=None, cache=None, environ=None, strict=True, substitutions=(), signal=None):
    _require_imports()
    document = parse_xml(xml)
    ctx = ProcessingContext(config_path="test.xml")
    resolver = IncludeResolver(strict=strict, substitutions=substitutions, environ=environ or {}, context=ctx)
    keys = resolver.resolve_includes(
        document.root,
        include_source=parse_xml(include_source) if include_source else None,
        coordination_cache=cache,
        change_signal=signal,
    )
    return canonical_xml(document.root), keys, ctx


# ---------------------------------------------------------------------------
# Validação estrutural
# ---------------------------------------------------------------------------

def test_multiple_directives_raise_before_lookup(coordination_cache):
    """
    Verifica que mais de uma diretiva no mesmo elemento é erro estrutural.

    Invariantes:
        - Nenhuma fonte (coordenação, ambiente) é consultada antes da checagem
    """
    with pytest.raises(AmbiguousDirectiveError):
        _resolve('<c><x incl="a" from_zk="/k"/></c>', cache=coordination_cache)
    assert coordination_cache.calls == []


def test_include_with_children_is_malformed():
    with pytest.raises(MalformedIncludeError):
        _resolve('<c><include from_env="A"><x/></include></c>', environ={"A": "1"})


def test_include_without_directive_is_malformed():
    with pytest.raises(MalformedIncludeError):
        _resolve("<c><include/></c>")


# ---------------------------------------------------------------------------
# Não encontrado
# ---------------------------------------------------------------------------

def test_optional_unresolved_element_is_removed():
    """
    Verifica que `optional` tem prioridade sobre o modo estrito.

    Invariantes:
        - O elemento é removido sem erro e sem aviso
    """
    out, _, ctx = _resolve('<c><foo from_env="UNSET_VAR" optional="1"/><bar/></c>')
    assert out == "<c><bar></bar></c>"
    assert ctx.warnings == []


def test_strict_unresolved_raises_with_directive_and_target():
    with pytest.raises(UnresolvedReferenceError) as info:
        _resolve('<c><foo from_env="UNSET_VAR"/></c>')
    assert info.value.directive == "from_env"
    assert info.value.target == "UNSET_VAR"
    assert "UNSET_VAR" in str(info.value)


def test_lenient_keeps_element_but_drops_include():
    """
    Verifica o modo leniente para referências não encontradas.

    Decisões arquiteturais:
        - Elemento comum permanece intacto, com a diretiva ainda presente
        - Elemento `include` é removido
        - Cada ocorrência gera um aviso no contexto de processamento
    """
    out, _, ctx = _resolve(
        '<c><foo from_env="UNSET_VAR"/><include from_env="UNSET_VAR"/></c>',
        strict=False,
    )
    assert out == '<c><foo from_env="UNSET_VAR"></foo></c>'
    assert ctx.warnings == ["Env variable is not set: UNSET_VAR"] * 2
    assert len(ctx.events_at("WARNING")) == 2


def test_incl_without_include_source_is_not_found():
    out, _, _ = _resolve('<c><servers incl="remote_servers" optional="1"/></c>')
    assert out == "<c></c>"


# ---------------------------------------------------------------------------
# Importação
# ---------------------------------------------------------------------------

def test_incl_appends_children_and_copies_attributes():
    out, _, _ = _resolve(
        '<c><servers incl="remote"><local/></servers></c>',
        include_source='<yandex><remote mode="r"><shard>1</shard></remote></yandex>',
    )
    assert out == '<c><servers mode="r"><local></local><shard>1</shard></servers></c>'


def test_replace_discards_existing_children():
    out, _, _ = _resolve(
        '<c><servers incl="remote" replace="1"><local/></servers></c>',
        include_source="<yandex><remote><shard>1</shard></remote></yandex>",
    )
    assert out == "<c><servers><shard>1</shard></servers></c>"


def test_include_element_is_spliced_in_place():
    """
    Verifica que `<include>` é substituído pelos filhos da fonte, na
    mesma posição entre os irmãos.
    """
    out, _, _ = _resolve(
        '<c><a/><include incl="macros"/><z/></c>',
        include_source="<yandex><macros><m1>x</m1><m2>y</m2></macros></yandex>",
    )
    assert out == "<c><a></a><m1>x</m1><m2>y</m2><z></z></c>"


def test_incl_supports_nested_path():
    out, _, _ = _resolve(
        '<c><p incl="section/value"/></c>',
        include_source="<yandex><section><value>42</value></section></yandex>",
    )
    assert out == "<c><p>42</p></c>"


def test_spliced_content_is_resolved():
    out, _, _ = _resolve(
        '<c><include incl="block"/></c>',
        include_source='<yandex><block><port from_env="PORT"/></block></yandex>',
        environ={"PORT": "9000"},
    )
    assert out == "<c><port>9000</port></c>"


def test_from_env_plain_text_and_markup():
    out, _, _ = _resolve(
        '<c><port from_env="PORT"/><hosts from_env="HOSTS"/></c>',
        environ={"PORT": "8123", "HOSTS": "<h>a</h><h>b</h>"},
    )
    assert out == "<c><port>8123</port><hosts><h>a</h><h>b</h></hosts></c>"


def test_included_content_is_copied_not_aliased():
    _require_imports()
    include_source = parse_xml("<yandex><remote><shard>1</shard></remote></yandex>")
    document = parse_xml('<c><servers incl="remote"/></c>')
    IncludeResolver(environ={}).resolve_includes(document.root, include_source=include_source)

    document.root.find("servers/shard").set_attribute("touched", "1")
    assert include_source.root.find("remote/shard").get_attribute("touched") is None


# ---------------------------------------------------------------------------
# Coordenação
# ---------------------------------------------------------------------------

def test_from_zk_resolves_through_cache_with_change_signal(coordination_cache):
    coordination_cache.nodes["/cfg/port"] = "9000"
    signal = object()

    out, keys, _ = _resolve('<c><port from_zk="/cfg/port"/></c>', cache=coordination_cache, signal=signal)

    assert out == "<c><port>9000</port></c>"
    assert keys == {"/cfg/port"}
    assert coordination_cache.calls == [("/cfg/port", signal)]


def test_every_from_zk_key_is_recorded(coordination_cache):
    coordination_cache.nodes["/a"] = "1"
    _, keys, _ = _resolve(
        '<c><a from_zk="/a"/><b from_zk="/missing" optional="1"/></c>',
        cache=coordination_cache,
    )
    assert keys == {"/a", "/missing"}


def test_from_zk_without_cache_is_deferred():
    """
    Verifica que, sem cache de coordenação, `from_zk` fica para depois.

    Decisões arquiteturais:
        - A chave é registrada (há includes dinâmicos)
        - O elemento não passa pela política de "não encontrado"
    """
    out, keys, ctx = _resolve('<c><a from_zk="/a"/></c>')
    assert out == '<c><a from_zk="/a"></a></c>'
    assert keys == {"/a"}
    assert ctx.warnings == []


def test_coordination_error_is_wrapped(coordination_cache):
    """
    Verifica que falhas do cliente de coordenação viram
    `CoordinationFailureError` com a chave e a causa original encadeada.
    """
    coordination_cache.failing = True
    with pytest.raises(CoordinationFailureError) as info:
        _resolve('<c><a from_zk="/a"/></c>', cache=coordination_cache)
    assert info.value.key == "/a"
    assert isinstance(info.value.__cause__, CoordinationError)


def test_chained_include_resolves_before_next_sibling(coordination_cache):
    """
    Verifica que conteúdo importado com nova diretiva é resolvido antes
    da travessia seguir para os irmãos do elemento.
    """
    coordination_cache.nodes.update({"/inner": "<leaf>deep</leaf>", "/after": "2"})

    out, keys, _ = _resolve(
        '<c><outer from_env="OUTER"/><next from_zk="/after"/></c>',
        cache=coordination_cache,
        environ={"OUTER": '<mid from_zk="/inner"/>'},
    )

    assert out == "<c><outer><mid><leaf>deep</leaf></mid></outer><next>2</next></c>"
    assert [path for path, _ in coordination_cache.calls] == ["/inner", "/after"]
    assert keys == {"/inner", "/after"}


def test_chained_attribute_directive_on_same_node():
    out, _, _ = _resolve(
        '<c><p incl="redirect"/></c>',
        include_source='<yandex><redirect from_env="VALUE"/></yandex>',
        environ={"VALUE": "final"},
    )
    assert out == "<c><p>final</p></c>"


# ---------------------------------------------------------------------------
# Substituições
# ---------------------------------------------------------------------------

def test_substitutions_apply_to_every_occurrence():
    """
    Verifica que a tabela de substituições troca todas as ocorrências em
    cada nó de texto, deixando intactos os padrões não cadastrados.
    """
    out, _, _ = _resolve(
        "<c><path>{root}/data/{root}</path><x>{none}</x></c>",
        substitutions=[("{root}", "/srv")],
    )
    assert out == "<c><path>/srv/data//srv</path><x>{none}</x></c>"


def test_substitutions_apply_to_included_text():
    out, _, _ = _resolve(
        '<c><p from_env="P"/></c>',
        environ={"P": "{root}/logs"},
        substitutions=[("{root}", "/srv")],
    )
    assert out == "<c><p>/srv/logs</p></c>"


def test_empty_substitution_pattern_is_rejected():
    _require_imports()
    with pytest.raises(ValueError):
        IncludeResolver(substitutions=[("", "x")])
