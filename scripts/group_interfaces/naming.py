"""XML name → generated-name conversions.

Follows the conventions of the schema compiler that produced the placeholder
classes, so names derived here line up with the names found in the outline:

    to_property_name("first-name")            → "FirstName"
    to_class_name("AddressGroup")             → "AddressGroup"
    to_variable_name("FirstName")             → "firstName"
    to_package_name("http://www.example.com/ns/orders.xsd") → "com.example.ns.orders"
"""

from __future__ import annotations

import keyword
import re
from urllib.parse import urlsplit

_WORD_SPLIT = re.compile(r"[^0-9A-Za-z]+")
_INVALID_TOKEN_CHARS = re.compile(r"[^0-9a-z_]")
_STRIP_SUFFIXES = (".xsd", ".xml", ".wsdl")


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


class NameConverter:
    """Standard naming convention. Subclass to customise individual rules."""

    def to_property_name(self, xml_name: str) -> str:
        words = [w for w in _WORD_SPLIT.split(xml_name) if w]
        name = "".join(_capitalize(w) for w in words)
        if not name:
            return "Value"
        if name[0].isdigit():
            name = "_" + name
        return name

    def to_class_name(self, xml_name: str) -> str:
        return self.to_property_name(xml_name)

    def to_variable_name(self, property_name: str) -> str:
        name = property_name[:1].lower() + property_name[1:]
        if keyword.iskeyword(name):
            name += "_"
        return name

    def to_package_name(self, namespace_uri: str) -> str | None:
        """Map a namespace URI to a dotted package name; None for no namespace."""
        if not namespace_uri:
            return None

        tokens: list[str]
        if namespace_uri.startswith("urn:"):
            tokens = [t for t in re.split(r"[:/]", namespace_uri[4:]) if t]
        else:
            parts = urlsplit(namespace_uri)
            if parts.scheme and parts.netloc:
                host = [h for h in parts.hostname.split(".") if h] if parts.hostname else []
                if host and host[0] == "www":
                    host = host[1:]
                tokens = list(reversed(host))
                tokens += [p for p in parts.path.split("/") if p]
            else:
                tokens = [t for t in re.split(r"[:/]", namespace_uri) if t]

        if tokens:
            last = tokens[-1].lower()
            for suffix in _STRIP_SUFFIXES:
                if last.endswith(suffix):
                    tokens[-1] = tokens[-1][: -len(suffix)]
                    break

        package = [self._package_token(t) for t in tokens if t]
        return ".".join(package) if package else None

    @staticmethod
    def _package_token(token: str) -> str:
        token = _INVALID_TOKEN_CHARS.sub("_", token.lower())
        if token[:1].isdigit() or keyword.iskeyword(token):
            token = "_" + token
        return token
