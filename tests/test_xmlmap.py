"""Tests for XML to dict mapping."""

import pytest

from conftest import INVOICE_XML
from zugferdreader.exceptions import XmlMappingError
from zugferdreader.xmlmap import xml_to_dict


def test_invoice_keeps_namespace_prefixes():
    result = xml_to_dict(INVOICE_XML.decode("utf-8"))

    root = result["rsm:CrossIndustryInvoice"]
    assert root["@_xmlns:rsm"] == "urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100"
    assert root["rsm:ExchangedDocument"] == {
        "ram:ID": "INV-2024-0042",
        "ram:TypeCode": 380,
    }


def test_attributes_and_text():
    result = xml_to_dict('<Amount currencyID="EUR">19.99</Amount>')
    assert result == {"Amount": {"@_currencyID": "EUR", "#text": 19.99}}


def test_repeated_siblings_become_list():
    result = xml_to_dict("<r><Line>1</Line><Line>2</Line><Line>three</Line></r>")
    assert result == {"r": {"Line": [1, 2, "three"]}}


def test_empty_leaf_is_empty_string():
    assert xml_to_dict("<r><Note/></r>") == {"r": {"Note": ""}}


def test_leading_zeros_stay_strings():
    result = xml_to_dict('<r code="007"><ID>0042</ID><Zero>0</Zero><Neg>-3</Neg></r>')
    assert result == {"r": {"@_code": "007", "ID": "0042", "Zero": 0, "Neg": -3}}


def test_default_namespace_has_no_prefix():
    result = xml_to_dict('<Invoice xmlns="urn:oasis:names:specification:ubl:schema:xsd:Invoice-2"><ID>A1</ID></Invoice>')
    assert result == {
        "Invoice": {
            "@_xmlns": "urn:oasis:names:specification:ubl:schema:xsd:Invoice-2",
            "ID": "A1",
        }
    }


def test_namespaced_attribute():
    result = xml_to_dict('<r xml:lang="de">Text</r>')
    assert result == {"r": {"@_xml:lang": "de", "#text": "Text"}}


def test_invalid_xml_raises():
    with pytest.raises(XmlMappingError):
        xml_to_dict("<r><unclosed></r>")


def test_empty_text_raises():
    with pytest.raises(XmlMappingError):
        xml_to_dict("")


def test_xml_declaration_is_kept():
    result = xml_to_dict(INVOICE_XML.decode("utf-8"))
    assert list(result) == ["?xml", "rsm:CrossIndustryInvoice"]
    assert result["?xml"] == {"@_version": "1.0", "@_encoding": "UTF-8"}


def test_document_without_declaration_has_only_root():
    assert list(xml_to_dict("<r><a>1</a></r>")) == ["r"]


def test_mixed_content_keeps_text_between_children():
    result = xml_to_dict("<Note>Pay <b>now</b> or later</Note>")
    assert result == {"Note": {"b": "now", "#text": "Pay or later"}}
