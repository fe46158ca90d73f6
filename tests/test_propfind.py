"""
Тесты сборки и разбора XML-тел WebDAV.
"""

from xml.etree import ElementTree as ET

import pytest

from davstore.net.propfind import (
    LISTING_PROPS,
    build_propfind_body,
    build_proppatch_body,
    parse_multistatus,
    parse_status,
    proppatch_failures,
)

MULTISTATUS = b"""<?xml version="1.0" encoding="utf-8"?>
<d:multistatus xmlns:d="DAV:">
  <d:response>
    <d:href>/dav/</d:href>
    <d:propstat>
      <d:prop><d:resourcetype><d:collection/></d:resourcetype></d:prop>
      <d:status>HTTP/1.1 200 OK</d:status>
    </d:propstat>
  </d:response>
  <d:response>
    <d:href>http://h/dav/a%20b.txt</d:href>
    <d:propstat>
      <d:prop>
        <d:getcontentlength>10</d:getcontentlength>
        <d:getlastmodified>Tue, 14 Nov 2023 22:13:20 GMT</d:getlastmodified>
        <d:resourcetype/>
      </d:prop>
      <d:status>HTTP/1.1 200 OK</d:status>
    </d:propstat>
    <d:propstat>
      <d:prop><d:getcontenttype/></d:prop>
      <d:status>HTTP/1.1 404 Not Found</d:status>
    </d:propstat>
  </d:response>
  <d:response>
    <d:href>/dav/gone</d:href>
    <d:status>HTTP/1.1 410 Gone</d:status>
  </d:response>
</d:multistatus>
"""


class TestBodies:
    """Тела запросов."""

    def test_propfind_requests_listing_props(self):
        root = ET.fromstring(build_propfind_body())
        assert root.tag == "{DAV:}propfind"
        names = [el.tag for el in root.find("{DAV:}prop")]
        assert names == [f"{{DAV:}}{p}" for p in LISTING_PROPS]

    def test_proppatch_sets_property_without_namespace(self):
        root = ET.fromstring(build_proppatch_body({"lastmodified": "1700000000"}))
        el = root.find("{DAV:}set/{DAV:}prop/lastmodified")
        assert el is not None
        assert el.text == "1700000000"


class TestParseMultistatus:
    """Разбор ответа 207."""

    def test_entries_in_server_order(self):
        entries = parse_multistatus(MULTISTATUS)
        assert [e.href for e in entries] == ["/dav/", "http://h/dav/a%20b.txt", "/dav/gone"]

    def test_collection_and_props(self):
        root, doc, gone = parse_multistatus(MULTISTATUS)
        assert root.collection is True
        assert doc.collection is False
        assert doc.props["getcontentlength"] == "10"
        # свойство из propstat 404 не попадает в props
        assert "getcontenttype" not in doc.props
        assert gone.status == 410
        assert gone.propstat_ok is False

    def test_invalid_xml_raises(self):
        with pytest.raises(ET.ParseError):
            parse_multistatus(b"<not-closed>")

    def test_proppatch_failures(self):
        body = b"""<d:multistatus xmlns:d="DAV:"><d:response><d:href>/x</d:href>
        <d:propstat><d:prop><lastmodified/></d:prop><d:status>HTTP/1.1 403 Forbidden</d:status></d:propstat>
        </d:response></d:multistatus>"""
        assert proppatch_failures(body) == [403]

    @pytest.mark.parametrize("line,expected", [("HTTP/1.1 200 OK", 200), ("HTTP/1.0 507 Full", 507), ("garbage", None), (None, None)])
    def test_parse_status(self, line, expected):
        assert parse_status(line) == expected
