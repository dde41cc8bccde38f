"""Tests for scripts/group_interfaces/xsd.py.

load_schema_set() builds typed components with locators, follows local
includes/imports, and raises actionable SchemaParseErrors on bad input.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import NAMESPACE, write_xsd
from group_interfaces.types import Compositor, GroupKind, QName
from group_interfaces.xsd import (
    AttGroupDecl,
    ElementDecl,
    GroupRef,
    ModelGroup,
    ModelGroupDecl,
    SchemaParseError,
    Wildcard,
    load_schema_set,
)


def q(local: str, namespace: str = NAMESPACE) -> QName:
    return QName(namespace, local)


# ─── Group declarations ───────────────────────────────────────────────────────


class TestGroupDeclarations:
    """Named model groups and attribute groups, in document order."""

    def test_groups_in_document_order(self, scenario_path) -> None:
        schema = load_schema_set(scenario_path("repeated_group_ref"))
        assert [d.qname for d in schema.iterate_model_group_decls()] == [q("Inner"), q("Outer")]
        assert list(schema.iterate_att_group_decls()) == []

    def test_model_group_particles(self, scenario_path) -> None:
        schema = load_schema_set(scenario_path("nested_groups"))
        outer = schema.model_groups[q("Outer")]
        assert isinstance(outer, ModelGroupDecl)
        assert outer.kind is GroupKind.MODEL_GROUP
        assert outer.model_group.compositor is Compositor.SEQUENCE
        ref, label = outer.model_group.particles
        assert ref.term == GroupRef(GroupKind.MODEL_GROUP, q("Inner"))
        assert isinstance(label.term, ElementDecl)
        assert label.term.qname == q("label")
        assert label.term.type_name == QName("http://www.w3.org/2001/XMLSchema", "string")

    def test_repeated_particle(self, scenario_path) -> None:
        schema = load_schema_set(scenario_path("repeated_group_ref"))
        ref = schema.model_groups[q("Outer")].model_group.particles[0]
        assert ref.max_occurs is None
        assert ref.is_repeated

    def test_attribute_group_uses_and_refs(self, scenario_path) -> None:
        schema = load_schema_set(scenario_path("attribute_group_chain"))
        versioned = schema.attribute_groups[q("Versioned")]
        assert isinstance(versioned, AttGroupDecl)
        assert versioned.kind is GroupKind.ATTRIBUTE_GROUP
        assert [u.name for u in versioned.attribute_uses] == ["version", "active"]
        assert versioned.att_groups == (GroupRef(GroupKind.ATTRIBUTE_GROUP, q("Identified")),)

    def test_fixed_attribute(self, scenario_path) -> None:
        schema = load_schema_set(scenario_path("fixed_attribute"))
        (use,) = schema.attribute_groups[q("Base")].attribute_uses
        assert use.decl.fixed == "1"

    def test_group_source_kept(self, scenario_path) -> None:
        schema = load_schema_set(scenario_path("address"))
        decl = schema.model_groups[q("AddressGroup")]
        assert decl.source is not None
        assert decl.source.get("name") == "AddressGroup"

    def test_str_names_kind_and_qname(self, scenario_path) -> None:
        schema = load_schema_set(scenario_path("address"))
        assert str(schema.model_groups[q("AddressGroup")]) == f"group {{{NAMESPACE}}}AddressGroup"


# ─── Complex types ────────────────────────────────────────────────────────────


class TestComplexTypes:
    def test_group_ref_content(self, scenario_path) -> None:
        schema = load_schema_set(scenario_path("nested_groups"))
        product = schema.complex_types[q("Product")]
        assert product.content_particle().term == GroupRef(GroupKind.MODEL_GROUP, q("Outer"))

    def test_attribute_group_refs(self, scenario_path) -> None:
        schema = load_schema_set(scenario_path("attribute_group_chain"))
        record = schema.complex_types[q("Record")]
        assert record.att_groups == (GroupRef(GroupKind.ATTRIBUTE_GROUP, q("Versioned")),)

    def test_extension_keeps_explicit_content(self, tmp_path: Path) -> None:
        path = write_xsd(tmp_path, """\
            <xs:group name="G">
              <xs:sequence>
                <xs:element name="b" type="xs:string"/>
              </xs:sequence>
            </xs:group>
            <xs:complexType name="Base">
              <xs:sequence>
                <xs:element name="a" type="xs:string"/>
              </xs:sequence>
            </xs:complexType>
            <xs:complexType name="Derived">
              <xs:complexContent>
                <xs:extension base="tns:Base">
                  <xs:sequence>
                    <xs:group ref="tns:G"/>
                  </xs:sequence>
                </xs:extension>
              </xs:complexContent>
            </xs:complexType>
        """)
        derived = load_schema_set(path).complex_types[q("Derived")]
        assert derived.base == q("Base")
        assert derived.content is None
        assert derived.explicit_content is not None
        assert derived.content_particle() is derived.explicit_content
        assert isinstance(derived.explicit_content.term, ModelGroup)

    def test_restriction_sets_effective_content(self, tmp_path: Path) -> None:
        path = write_xsd(tmp_path, """\
            <xs:complexType name="Base">
              <xs:sequence>
                <xs:element name="a" type="xs:string" minOccurs="0"/>
              </xs:sequence>
            </xs:complexType>
            <xs:complexType name="Narrow">
              <xs:complexContent>
                <xs:restriction base="tns:Base">
                  <xs:sequence>
                    <xs:element name="a" type="xs:string"/>
                  </xs:sequence>
                </xs:restriction>
              </xs:complexContent>
            </xs:complexType>
        """)
        narrow = load_schema_set(path).complex_types[q("Narrow")]
        assert narrow.explicit_content is None
        assert narrow.content_particle() is narrow.content

    def test_mixed_and_wildcard(self, tmp_path: Path) -> None:
        path = write_xsd(tmp_path, """\
            <xs:complexType name="Text" mixed="true">
              <xs:sequence>
                <xs:any namespace="##other" processContents="lax"/>
              </xs:sequence>
            </xs:complexType>
        """)
        text = load_schema_set(path).complex_types[q("Text")]
        assert text.mixed
        (particle,) = text.content_particle().term.particles
        assert particle.term == Wildcard("##other")


# ─── Declarations and customizations ──────────────────────────────────────────


class TestDeclarations:
    def test_element_ref_resolves_to_global(self, tmp_path: Path) -> None:
        path = write_xsd(tmp_path, """\
            <xs:element name="note" type="xs:string" fixed="n/a"/>
            <xs:group name="Notes">
              <xs:sequence>
                <xs:element ref="tns:note"/>
              </xs:sequence>
            </xs:group>
        """)
        schema = load_schema_set(path)
        (particle,) = schema.model_groups[q("Notes")].model_group.particles
        assert particle.term.is_global
        assert particle.term.fixed == "n/a"
        assert particle.term == schema.elements[q("note")]

    def test_unqualified_local_elements(self, tmp_path: Path) -> None:
        path = tmp_path / "unqualified.xsd"
        path.write_text(f"""<?xml version="1.0"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema" targetNamespace="{NAMESPACE}">
  <xs:group name="G">
    <xs:sequence>
      <xs:element name="local" type="xs:string"/>
    </xs:sequence>
  </xs:group>
</xs:schema>
""")
        schema = load_schema_set(path)
        (particle,) = schema.model_groups[q("G")].model_group.particles
        assert particle.term.qname == QName("", "local")

    def test_custom_property_name_on_element(self, scenario_path) -> None:
        schema = load_schema_set(scenario_path("accessor_conventions"))
        particles = schema.model_groups[q("Contact")].model_group.particles
        postcode = next(p.term for p in particles if p.term.name == "postcode")
        assert postcode.property_name == "zip"

    def test_custom_property_name_on_global_attribute(self, tmp_path: Path) -> None:
        path = write_xsd(
            tmp_path,
            """\
            <xs:attribute name="lang" type="xs:language">
              <xs:annotation>
                <xs:appinfo>
                  <legacy:property name="language"/>
                </xs:appinfo>
              </xs:annotation>
            </xs:attribute>
            <xs:attributeGroup name="Localized">
              <xs:attribute ref="tns:lang" use="required"/>
            </xs:attributeGroup>
            """,
            extra='xmlns:legacy="http://java.sun.com/xml/ns/jaxb"',
        )
        (use,) = load_schema_set(path).attribute_groups[q("Localized")].attribute_uses
        assert use.required
        assert use.property_name is None
        assert use.decl.property_name == "language"


# ─── Includes, imports, locators ──────────────────────────────────────────────


class TestSchemaSet:
    def test_include_and_import_are_followed(self, tmp_path: Path) -> None:
        other = "http://example.com/common"
        write_xsd(tmp_path, """\
            <xs:attributeGroup name="Audited">
              <xs:attribute name="createdBy" type="xs:string"/>
            </xs:attributeGroup>
        """, name="common.xsd", namespace=other)
        write_xsd(tmp_path, """\
            <xs:group name="Extra">
              <xs:sequence>
                <xs:element name="x" type="xs:string"/>
              </xs:sequence>
            </xs:group>
        """, name="extra.xsd")
        main = write_xsd(
            tmp_path,
            f"""\
            <xs:include schemaLocation="extra.xsd"/>
            <xs:import namespace="{other}" schemaLocation="common.xsd"/>
            <xs:complexType name="Order">
              <xs:sequence>
                <xs:group ref="tns:Extra"/>
              </xs:sequence>
              <xs:attributeGroup ref="c:Audited"/>
            </xs:complexType>
            """,
            name="main.xsd",
            extra=f'xmlns:c="{other}"',
        )
        schema = load_schema_set(main)
        assert len(schema.system_ids) == 3
        assert q("Extra") in schema.model_groups
        assert QName(other, "Audited") in schema.attribute_groups
        assert schema.complex_types[q("Order")].att_groups[0].qname == QName(other, "Audited")
        assert set(schema.target_namespaces) == {other, NAMESPACE}

    def test_same_file_loaded_once(self, scenario_path) -> None:
        path = scenario_path("address")
        schema = load_schema_set(path, path)
        assert len(schema.system_ids) == 1

    def test_locator_points_at_start_tag(self, scenario_path) -> None:
        path = scenario_path("address")
        decl = load_schema_set(path).model_groups[q("AddressGroup")]
        assert decl.locator is not None
        assert decl.locator.system_id == str(path.resolve())
        # Line 7: the XML declaration and the six-line schema start tag come first.
        assert decl.locator.line == 7
        assert str(decl.locator).startswith(f"{path.resolve()}:7:")

    def test_group_lookup_by_ref(self, scenario_path) -> None:
        schema = load_schema_set(scenario_path("nested_groups"))
        ref = GroupRef(GroupKind.MODEL_GROUP, q("Inner"))
        assert schema.group(ref) is schema.model_groups[q("Inner")]
        assert schema.group(GroupRef(GroupKind.ATTRIBUTE_GROUP, q("Inner"))) is None


# ─── Error paths ──────────────────────────────────────────────────────────────


class TestSchemaParseErrors:
    """SchemaParseError raised on malformed input, with 'Fix:' guidance."""

    def test_no_paths(self) -> None:
        with pytest.raises(SchemaParseError, match="Fix:"):
            load_schema_set()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SchemaParseError) as exc_info:
            load_schema_set(tmp_path / "nope.xsd")
        msg = str(exc_info.value)
        assert "not found" in msg
        assert "Fix:" in msg

    def test_malformed_xml(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.xsd"
        bad.write_text('<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"><xs:group')
        with pytest.raises(SchemaParseError, match="XML parse error"):
            load_schema_set(bad)

    def test_wrong_root(self, tmp_path: Path) -> None:
        bad = tmp_path / "root.xsd"
        bad.write_text('<?xml version="1.0"?><definitions/>')
        with pytest.raises(SchemaParseError, match="Unexpected root element <definitions>"):
            load_schema_set(bad)

    def test_unknown_prefix(self, tmp_path: Path) -> None:
        path = write_xsd(tmp_path, """\
            <xs:complexType name="T">
              <xs:sequence>
                <xs:group ref="nope:G"/>
              </xs:sequence>
            </xs:complexType>
        """)
        with pytest.raises(SchemaParseError, match="Unknown namespace prefix 'nope'"):
            load_schema_set(path)

    def test_unknown_element_ref(self, tmp_path: Path) -> None:
        path = write_xsd(tmp_path, """\
            <xs:group name="G">
              <xs:sequence>
                <xs:element ref="tns:ghost"/>
              </xs:sequence>
            </xs:group>
        """)
        with pytest.raises(SchemaParseError, match="does not name a global element"):
            load_schema_set(path)

    def test_unknown_attribute_ref(self, tmp_path: Path) -> None:
        path = write_xsd(tmp_path, """\
            <xs:attributeGroup name="A">
              <xs:attribute ref="tns:ghost"/>
            </xs:attributeGroup>
        """)
        with pytest.raises(SchemaParseError, match="does not name a global attribute"):
            load_schema_set(path)
