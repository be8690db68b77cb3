"""Minimal XMP packet model for the JPEG codec.

Supports what the note codec needs and nothing more: simple text
properties (as attributes or child elements of ``rdf:Description``),
``x-default`` language alternatives such as ``dc:description``, and
Adobe Extended XMP for packets that do not fit in one APP1 segment.

Foreign properties and their namespace prefixes are preserved through a
parse/serialise round trip.
"""

from __future__ import annotations

import copy
import hashlib
import io
import re
import struct
import xml.etree.ElementTree as ET

from constants import (
    XMP_EXTENSION_CHUNK,
    XMP_EXTENSION_HEADER,
    XMP_EXTENSION_PREAMBLE,
    XMP_HEADER,
    XMP_NAMESPACE_PREFIXES,
    XMP_NS_META,
    XMP_NS_RDF,
    XMP_NS_XML,
)

for _prefix, _uri in XMP_NAMESPACE_PREFIXES.items():
    ET.register_namespace(_prefix, _uri)

# ElementTree reserves these for prefixes it generates itself
_GENERATED_PREFIX = re.compile(r"ns\d+$")

_XMPMETA = f"{{{XMP_NS_META}}}xmpmeta"
_RDF = f"{{{XMP_NS_RDF}}}RDF"
_DESCRIPTION = f"{{{XMP_NS_RDF}}}Description"
_ABOUT = f"{{{XMP_NS_RDF}}}about"
_ALT = f"{{{XMP_NS_RDF}}}Alt"
_LI = f"{{{XMP_NS_RDF}}}li"
_LANG = f"{{{XMP_NS_XML}}}lang"

_PACKET_BEGIN = '<?xpacket begin="\ufeff" id="W5M0MpCehiHzreSzNTczkc9d"?>'
_PACKET_END = '<?xpacket end="w"?>'


class XmpFormatError(ValueError):
    """An XMP packet could not be parsed."""


def _qname(ns: str, name: str) -> str:
    return f"{{{ns}}}{name}"


def _register_prefixes(prefixes: dict[str, str]) -> None:
    """Make the serialiser write *prefixes* instead of generated ``nsN`` ones."""
    for prefix, uri in prefixes.items():
        if not prefix or _GENERATED_PREFIX.match(prefix):
            continue
        if prefix in XMP_NAMESPACE_PREFIXES or uri in XMP_NAMESPACE_PREFIXES.values():
            continue
        ET.register_namespace(prefix, uri)


class XmpPacket:
    """A parsed ``x:xmpmeta`` tree."""

    def __init__(self, root: ET.Element, prefixes: dict[str, str] | None = None) -> None:
        self.root = root
        self.prefixes = prefixes or {}

    @classmethod
    def empty(cls) -> XmpPacket:
        root = ET.Element(_XMPMETA)
        rdf = ET.SubElement(root, _RDF)
        ET.SubElement(rdf, _DESCRIPTION, {_ABOUT: ""})
        return cls(root)

    @classmethod
    def parse(cls, packet: bytes) -> XmpPacket:
        """Parse a serialised packet (with or without ``xpacket`` wrapper)."""
        start = packet.find(b"<")
        text = packet[start:] if start > 0 else packet
        prefixes: dict[str, str] = {}
        try:
            # Trailing padding after the closing xpacket PI is whitespace
            events = ET.iterparse(io.BytesIO(text.rstrip(b"\x00 \t\r\n")), events=("start-ns",))
            for _event, (prefix, uri) in events:
                prefixes.setdefault(prefix, uri)
            root = events.root
        except ET.ParseError as e:
            raise XmpFormatError(f"Malformed XMP packet: {e}") from e

        if root.tag == _RDF:
            wrapper = ET.Element(_XMPMETA)
            wrapper.append(root)
            root = wrapper
        if root.tag != _XMPMETA or root.find(_RDF) is None:
            raise XmpFormatError(f"Unexpected XMP root element {root.tag!r}")
        return cls(root, prefixes)

    # ── Descriptions ────────────────────────────────────────────────

    def _rdf(self) -> ET.Element:
        return self.root.find(_RDF)

    def _descriptions(self) -> list[ET.Element]:
        return self._rdf().findall(_DESCRIPTION)

    def _primary(self) -> ET.Element:
        descriptions = self._descriptions()
        if descriptions:
            return descriptions[0]
        return ET.SubElement(self._rdf(), _DESCRIPTION, {_ABOUT: ""})

    # ── Simple properties ───────────────────────────────────────────

    def get(self, ns: str, name: str) -> str | None:
        """Return a simple text property, or None if absent."""
        qname = _qname(ns, name)
        for description in self._descriptions():
            if qname in description.attrib:
                return description.attrib[qname]
            element = description.find(qname)
            if element is not None:
                return element.text or ""
        return None

    def set(self, ns: str, name: str, value: str) -> None:
        self.remove(ns, name)
        element = ET.SubElement(self._primary(), _qname(ns, name))
        element.text = value

    def remove(self, ns: str, name: str) -> bool:
        """Remove a property wherever it appears. Returns True if found."""
        qname = _qname(ns, name)
        removed = False
        for description in self._descriptions():
            if description.attrib.pop(qname, None) is not None:
                removed = True
            for element in description.findall(qname):
                description.remove(element)
                removed = True
        return removed

    # ── Language alternatives ───────────────────────────────────────

    def get_lang_alt(self, ns: str, name: str) -> str | None:
        """Return the ``x-default`` (or first) entry of a language alternative."""
        qname = _qname(ns, name)
        for description in self._descriptions():
            if qname in description.attrib:
                return description.attrib[qname]
            element = description.find(qname)
            if element is None:
                continue
            alt = element.find(_ALT)
            if alt is None:
                return element.text or ""
            items = alt.findall(_LI)
            for item in items:
                if item.get(_LANG) == "x-default":
                    return item.text or ""
            if items:
                return items[0].text or ""
        return None

    def set_lang_alt(self, ns: str, name: str, value: str) -> None:
        self.remove(ns, name)
        element = ET.SubElement(self._primary(), _qname(ns, name))
        alt = ET.SubElement(element, _ALT)
        item = ET.SubElement(alt, _LI, {_LANG: "x-default"})
        item.text = value

    # ── Whole-packet operations ─────────────────────────────────────

    def has_properties(self) -> bool:
        for description in self._descriptions():
            if len(description) or any(key != _ABOUT for key in description.attrib):
                return True
        return False

    def take(self, properties: list[tuple[str, str]]) -> XmpPacket:
        """Move *properties* out of this packet into a new one."""
        other = XmpPacket.empty()
        other.prefixes = dict(self.prefixes)
        target = other._primary()
        for ns, name in properties:
            qname = _qname(ns, name)
            for description in self._descriptions():
                if qname in description.attrib:
                    ET.SubElement(target, qname).text = description.attrib.pop(qname)
                for element in description.findall(qname):
                    description.remove(element)
                    target.append(element)
        return other

    def merge(self, other: XmpPacket) -> None:
        """Copy every property of *other* into this packet."""
        target = self._primary()
        for description in other._descriptions():
            for key, value in description.attrib.items():
                if key != _ABOUT:
                    target.set(key, value)
            for element in description:
                target.append(copy.deepcopy(element))
        for prefix, uri in other.prefixes.items():
            self.prefixes.setdefault(prefix, uri)

    def serialize(self, wrapper: bool = True) -> bytes:
        _register_prefixes(self.prefixes)
        body = ET.tostring(self.root, encoding="unicode")
        if wrapper:
            body = f"{_PACKET_BEGIN}{body}{_PACKET_END}"
        return body.encode("utf-8")


# ── APP1 payload helpers ────────────────────────────────────────────

def standard_payload(packet: XmpPacket) -> bytes:
    return XMP_HEADER + packet.serialize()


def extended_payloads(packet: XmpPacket) -> tuple[str, list[bytes]]:
    """
    Serialise *packet* as Extended XMP.

    Returns:
        ``(guid, payloads)`` where *guid* is the uppercase hex MD5 of the
        serialised packet and each payload fits one APP1 segment.
    """
    body = packet.serialize(wrapper=False)
    guid = hashlib.md5(body).hexdigest().upper()
    payloads = []
    for offset in range(0, len(body), XMP_EXTENSION_CHUNK):
        payloads.append(
            XMP_EXTENSION_HEADER
            + guid.encode("ascii")
            + struct.pack(">II", len(body), offset)
            + body[offset : offset + XMP_EXTENSION_CHUNK]
        )
    return guid, payloads


def assemble_extended(payloads: list[bytes], guid: str) -> bytes | None:
    """
    Reassemble the Extended XMP packet identified by *guid*.

    Returns:
        The packet bytes, or None if segments are missing or the
        checksum does not match.
    """
    header_len = len(XMP_EXTENSION_HEADER)
    full_length: int | None = None
    parts: dict[int, bytes] = {}
    for payload in payloads:
        body = payload[header_len:]
        if len(body) < XMP_EXTENSION_PREAMBLE or body[:32].decode("ascii", "replace") != guid:
            continue
        length, offset = struct.unpack(">II", body[32:XMP_EXTENSION_PREAMBLE])
        full_length = length
        parts[offset] = body[XMP_EXTENSION_PREAMBLE:]

    if full_length is None or sum(len(part) for part in parts.values()) != full_length:
        return None
    data = b"".join(part for _, part in sorted(parts.items()))
    if hashlib.md5(data).hexdigest().upper() != guid:
        return None
    return data
