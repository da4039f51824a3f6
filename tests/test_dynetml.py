import io
import logging
import xml.etree.ElementTree as ET

from survey_linker.network import DynetMLWriter, Entity, render_dynetml, write_dynetml

NETWORK_ATTRS = 'isDirected="true" allowSelfLoops="false" isBinary="false"'


def _scenario_entities():
    return {
        "Alice": Entity(id="Alice", type="Person", characteristics={"Name": "Alice"}, ties=["Acme"]),
        "Acme": Entity(id="Acme", type="Org", characteristics={"Org": "Acme"}),
        "Bob": Entity(id="Bob", type="Person", characteristics={"Name": "Bob"}, ties=["Acme"]),
    }


def test_document_grammar():
    doc = render_dynetml(_scenario_entities(), ["Person", "Org"], "net")

    expected = "\n".join(
        [
            '<?xml version="1.0" standalone="yes"?>',
            '<DynamicMetaNetwork id="net">',
            '\t<MetaNetwork id="net">',
            "\t\t<nodes>",
            '\t\t\t<nodeclass type="Agent" id="Person">',
            '\t\t\t\t<node id="Alice">',
            '\t\t\t\t\t<property id="Name" value="Alice"/>',
            "\t\t\t\t</node>",
            '\t\t\t\t<node id="Bob">',
            '\t\t\t\t\t<property id="Name" value="Bob"/>',
            "\t\t\t\t</node>",
            "\t\t\t</nodeclass>",
            '\t\t\t<nodeclass type="Agent" id="Org">',
            '\t\t\t\t<node id="Acme">',
            '\t\t\t\t\t<property id="Org" value="Acme"/>',
            "\t\t\t\t</node>",
            "\t\t\t</nodeclass>",
            "\t\t</nodes>",
            "\t\t<networks>",
            '\t\t\t<network sourceType="Agent" source="Respondent" targetType="Agent" target="Person"'
            f' id="Respondent x Person" {NETWORK_ATTRS}>',
            "\t\t\t</network>",
            '\t\t\t<network sourceType="Agent" source="Respondent" targetType="Agent" target="Org"'
            f' id="Respondent x Org" {NETWORK_ATTRS}>',
            '\t\t\t\t<link source="Alice" target="Acme" value="1"/>',
            '\t\t\t\t<link source="Bob" target="Acme" value="1"/>',
            "\t\t\t</network>",
            "\t\t</networks>",
            "\t</MetaNetwork>",
            "</DynamicMetaNetwork>",
        ]
    )
    assert doc == expected


def test_document_is_well_formed():
    root = ET.fromstring(render_dynetml(_scenario_entities(), ["Person", "Org"], "net"))

    classes = {nc.get("id"): len(nc.findall("node")) for nc in root.iter("nodeclass")}
    assert classes == {"Person": 2, "Org": 1}
    networks = {n.get("id"): len(n.findall("link")) for n in root.iter("network")}
    assert networks == {"Respondent x Person": 0, "Respondent x Org": 2}


def test_dangling_ties_are_skipped_and_logged(caplog):
    entities = _scenario_entities()
    entities["Alice"].ties.append("Ghost")
    buf = io.StringIO()

    with caplog.at_level(logging.WARNING):
        stats = write_dynetml(entities, ["Person", "Org"], "net", buf)

    assert 'target="Ghost"' not in buf.getvalue()
    assert stats.dangling == 1
    assert stats.links == 2
    assert "Missing entity: Ghost" in caplog.text


def test_unknown_types_are_not_emitted():
    entities = _scenario_entities()
    entities["Vault"] = Entity(id="Vault", type="Secret", characteristics={"Place": "Vault"})
    entities["Alice"].ties.append("Vault")

    buf = io.StringIO()
    stats = write_dynetml(entities, ["Person", "Org"], "net", buf)
    doc = buf.getvalue()

    assert "Vault" not in doc
    assert "Secret" not in doc
    assert stats.nodes == 3
    assert stats.dangling == 0
    assert stats.links_by_type == {"Person": 0, "Org": 2}


def test_link_count_matches_resolved_targets_per_type():
    entities = {
        "hub": Entity(id="hub", type="Person", ties=["a", "b", "b", "missing"]),
        "a": Entity(id="a", type="Person"),
        "b": Entity(id="b", type="Org"),
    }

    stats = write_dynetml(entities, ["Person", "Org"], "n", io.StringIO())

    assert stats.links_by_type == {"Person": 1, "Org": 2}
    assert stats.dangling == 1


def test_known_types_are_deduplicated_in_order():
    doc = render_dynetml(_scenario_entities(), ["Org", "Person", "Org"], "net")
    root = ET.fromstring(doc)

    assert [nc.get("id") for nc in root.iter("nodeclass")] == ["Org", "Person"]


def test_ampersand_substituted_in_values():
    entities = {"R+D": Entity(id="R+D", type="Org", characteristics={"Org": "R&D"})}

    doc = render_dynetml(entities, ["Org"], "net")

    assert '<property id="Org" value="R+D"/>' in doc
    assert "&" not in doc


def test_markup_left_alone_by_default():
    entities = {"x": Entity(id="x", type="Org", characteristics={"Note": 'a<b "c"'})}

    doc = render_dynetml(entities, ["Org"], "net")

    assert 'value="a<b "c""' in doc


def test_escape_markup_produces_valid_xml():
    entities = {
        "x": Entity(id="x", type="Org", characteristics={"Note": 'a<b> "c" & d'}),
    }

    buf = io.StringIO()
    DynetMLWriter(escape_markup=True).write(entities, ["Org"], "net", buf)
    root = ET.fromstring(buf.getvalue())

    prop = next(root.iter("property"))
    assert prop.get("value") == 'a<b> "c" + d'


def test_escape_markup_covers_ids_and_names():
    entities = {'a"b': Entity(id='a"b', type="<Org>", characteristics={"x&y": "1"})}

    doc = render_dynetml(entities, ["<Org>"], "n&1", escape_markup=True)
    root = ET.fromstring(doc)

    assert root.get("id") == "n&1"
    assert next(root.iter("nodeclass")).get("id") == "<Org>"
    assert next(root.iter("node")).get("id") == 'a"b'
    assert next(root.iter("property")).get("id") == "x&y"
