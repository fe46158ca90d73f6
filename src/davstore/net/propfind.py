"""
propfind — XML-тела запросов PROPFIND/PROPPATCH и разбор ответа multistatus.

По умолчанию работает с ElementTree.
Доменный разбор (тип ресурса, размер, дата) выполняется в filestore.catalog.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from io import BytesIO
from xml.etree import ElementTree as ET

DAV_NS = "DAV:"

# Свойства, запрашиваемые при листинге коллекции.
LISTING_PROPS: tuple[str, ...] = (
    "getlastmodified",
    "getcontentlength",
    "resourcetype",
    "getcontenttype",
)

_STATUS_RE = re.compile(r"^\s*HTTP/\S+\s+(\d{3})")


@dataclass(frozen=True, slots=True)
class PropEntry:
    """Один <response> из ответа multistatus.

    props содержит только свойства из propstat со статусом 2xx.
    status — статус уровня <response> (если сервер его прислал).
    """

    href: str
    status: int | None = None
    props: dict[str, str] = field(default_factory=dict)
    collection: bool = False
    propstat_ok: bool = False


def _q(name: str) -> str:
    return f"{{{DAV_NS}}}{name}"


def _tostring(root: ET.Element) -> bytes:
    bio = BytesIO()
    ET.ElementTree(root).write(bio, encoding="utf-8", xml_declaration=True)
    return bio.getvalue()


def build_propfind_body(props: tuple[str, ...] | list[str] = LISTING_PROPS) -> bytes:
    ET.register_namespace("D", DAV_NS)
    root = ET.Element(_q("propfind"))
    prop = ET.SubElement(root, _q("prop"))
    for name in props:
        ET.SubElement(prop, _q(name))
    return _tostring(root)


def build_proppatch_body(values: dict[str, str]) -> bytes:
    """PROPPATCH с set для свойств без пространства имён (например lastmodified)."""
    ET.register_namespace("D", DAV_NS)
    root = ET.Element(_q("propertyupdate"))
    set_el = ET.SubElement(root, _q("set"))
    prop = ET.SubElement(set_el, _q("prop"))
    for name, value in values.items():
        el = ET.SubElement(prop, name)
        el.text = str(value)
    return _tostring(root)


def parse_status(line: str | None) -> int | None:
    """'HTTP/1.1 200 OK' -> 200."""
    if not line:
        return None
    m = _STATUS_RE.match(line)
    return int(m.group(1)) if m else None


def parse_multistatus(data: bytes) -> list[PropEntry]:
    """Разбирает тело ответа 207 Multi-Status в порядке, присланном сервером.

    Некорректный XML поднимает ET.ParseError — вызывающий код решает, что с этим делать.
    """
    root = ET.fromstring(data)
    out: list[PropEntry] = []

    for resp in root.iter(_q("response")):
        href_el = resp.find(_q("href"))
        if href_el is None or not (href_el.text or "").strip():
            continue

        props: dict[str, str] = {}
        collection = False
        propstat_ok = False

        for ps in resp.findall(_q("propstat")):
            status = parse_status(ps.findtext(_q("status")))
            if status is None or not 200 <= status < 300:
                continue
            propstat_ok = True
            prop = ps.find(_q("prop"))
            if prop is None:
                continue
            for el in prop:
                local = el.tag.split("}", 1)[-1]
                if local == "resourcetype":
                    if el.find(_q("collection")) is not None:
                        collection = True
                    props[local] = "".join(child.tag for child in el)
                else:
                    props[local] = (el.text or "").strip()

        out.append(
            PropEntry(
                href=href_el.text.strip(),
                status=parse_status(resp.findtext(_q("status"))),
                props=props,
                collection=collection,
                propstat_ok=propstat_ok,
            )
        )

    return out


def proppatch_failures(data: bytes) -> list[int]:
    """Статусы propstat не из класса 2xx в ответе на PROPPATCH."""
    root = ET.fromstring(data)
    bad: list[int] = []
    for ps in root.iter(_q("propstat")):
        status = parse_status(ps.findtext(_q("status")))
        if status is not None and not 200 <= status < 300:
            bad.append(status)
    return bad
