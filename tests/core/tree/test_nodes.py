# tests/core/tree/test_nodes.py
"""
Testes do modelo de árvore comum.

Os testes asseguram que:
- anexar um nó em outro contêiner o move (um único pai)
- `clone()` produz cópia profunda sem aliasing
- a busca por caminho respeita nomes, índices e predicados de atributo

Invariantes:
    - Todo nó anexado conhece seu pai
    - Identidade de nó é por objeto, nunca por igualdade estrutural
"""

import pytest

try:
    from configweave.core.errors import DocumentParseError
    from configweave.core.tree import Comment, Document, Element, Text
except Exception as e:  # noqa: BLE001
    Element = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o modelo de árvore esteja disponível para os testes.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing tree model. Implement:\n"
            "- src/configweave/core/tree/nodes.py (Element, Text, Comment, Document)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _tree():
    _require_imports()
    return Element(
        name="root",
        children=[
            Element(name="shard", attributes={"id": "1"}, children=[Text("a")]),
            Element(name="shard", attributes={"id": "2"}, children=[Text("b")]),
            Element(name="logger", children=[Element(name="level", children=[Text("debug")])]),
        ],
    )


def test_children_know_their_parent():
    root = _tree()
    assert all(child.parent is root for child in root.children)


def test_append_moves_node_between_containers():
    """
    Verifica que anexar um nó já anexado o remove do contêiner anterior.

    Invariantes:
        - Um nó pertence a no máximo um contêiner
        - O contêiner de origem perde o filho
    """
    root = _tree()
    other = Element(name="other")
    shard = root.children[0]

    other.append(shard)

    assert shard.parent is other
    assert shard not in root.children
    assert len(root.child_elements()) == 2


def test_insert_before_and_replace():
    root = _tree()
    marker = Comment("marker")
    root.insert_before(marker, root.children[1])
    assert root.index_of(marker) == 1

    replacement = Element(name="replacement")
    old = root.children[0]
    root.replace(replacement, old)
    assert root.children[0] is replacement
    assert old.parent is None


def test_index_of_uses_identity():
    root = _tree()
    twin = Element(name="shard", attributes={"id": "1"}, children=[Text("a")])

    with pytest.raises(ValueError):
        root.index_of(twin)


def test_clone_is_deep_and_detached():
    """
    Verifica que `clone()` devolve uma cópia profunda desanexada.

    Invariantes:
        - Mutar a cópia (atributos ou texto) não afeta o original
        - A cópia não tem pai; seus filhos apontam para a cópia
    """
    root = _tree()
    copy = root.clone()

    copy.children[0].set_attribute("id", "99")
    copy.children[0].children[0].value = "changed"

    assert root.children[0].get_attribute("id") == "1"
    assert root.children[0].text() == "a"
    assert copy.parent is None
    assert copy.children[0].parent is copy


def test_find_by_path_index_and_attribute():
    """
    Verifica a sintaxe de caminho usada por `incl`.

    Decisões arquiteturais:
        - Segmentos separados por `/`
        - `name[n]` é base zero
        - `name[@attr=value]` aceita valor com ou sem aspas
    """
    root = _tree()

    assert root.find("logger/level").text() == "debug"
    assert root.find("shard").get_attribute("id") == "1"
    assert root.find("shard[1]").get_attribute("id") == "2"
    assert root.find("shard[@id=2]").text() == "b"
    assert root.find("shard[@id='2']").text() == "b"
    assert root.find("shard[@id]").get_attribute("id") == "1"
    assert root.find("shard[5]") is None
    assert root.find("missing/level") is None
    assert root.find("") is None


def test_inner_text_concatenates_descendants():
    _require_imports()
    element = Element(name="a", children=[Text("x"), Element(name="b", children=[Text("y")]), Text("z")])
    assert element.text() == "xyz"


def test_whitespace_text_detection():
    _require_imports()
    assert Text(" \n\t\r").is_whitespace()
    assert not Text(" x ").is_whitespace()


def test_document_without_root_element_raises():
    _require_imports()
    document = Document(children=[Comment("only a comment")])
    with pytest.raises(DocumentParseError):
        _ = document.root
