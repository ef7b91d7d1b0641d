"""
WMTS 1.0.0 GetCapabilities document for the discovered layers.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Mapping

from common import grid
from common.grid import IDENTIFIER, MAX_ZOOM, MIN_ZOOM, ORIGIN_X, ORIGIN_Y, TILE_SIZE
from tile_server.layers import TileLayer

WMTS_NS = "http://www.opengis.net/wmts/1.0"
OWS_NS = "http://www.opengis.net/ows/1.1"
XLINK_NS = "http://www.w3.org/1999/xlink"

SUPPORTED_CRS = "urn:ogc:def:crs:EPSG::3067"
# Scale denominator of zoom 0 (8192 m pixels at the 0.28 mm standard pixel)
BASE_SCALE_DENOMINATOR = 29257143.0

ET.register_namespace("", WMTS_NS)
ET.register_namespace("ows", OWS_NS)
ET.register_namespace("xlink", XLINK_NS)


def _wmts(tag: str) -> str:
    return f"{{{WMTS_NS}}}{tag}"


def _ows(tag: str) -> str:
    return f"{{{OWS_NS}}}{tag}"


def _text(parent: ET.Element, tag: str, value: str) -> ET.Element:
    el = ET.SubElement(parent, tag)
    el.text = value
    return el


def resource_template(layer: str) -> str:
    return f"/wmts/{layer}/{IDENTIFIER}/{{TileMatrix}}/{{TileRow}}/{{TileCol}}.png"


class CapabilitiesGenerator:
    """Builds the capabilities XML once; the layer set is fixed after discovery."""

    def __init__(self, layers: Mapping[str, TileLayer], title: str = "ETRS-TM35FIN tile service"):
        self.title = title
        self._xml = self._build(layers)

    @property
    def xml(self) -> bytes:
        return self._xml

    def _build(self, layers: Mapping[str, TileLayer]) -> bytes:
        root = ET.Element(_wmts("Capabilities"), {"version": "1.0.0"})

        ident = ET.SubElement(root, _ows("ServiceIdentification"))
        _text(ident, _ows("Title"), self.title)
        _text(ident, _ows("ServiceType"), "OGC WMTS")
        _text(ident, _ows("ServiceTypeVersion"), "1.0.0")

        contents = ET.SubElement(root, _wmts("Contents"))
        for name in sorted(layers):
            self._layer(contents, layers[name])
        self._tile_matrix_set(contents)

        return ET.tostring(root, encoding="utf-8", xml_declaration=True)

    @staticmethod
    def _layer(contents: ET.Element, layer: TileLayer) -> None:
        el = ET.SubElement(contents, _wmts("Layer"))
        _text(el, _ows("Title"), layer.name)
        _text(el, _ows("Identifier"), layer.name)
        style = ET.SubElement(el, _wmts("Style"), {"isDefault": "true"})
        _text(style, _ows("Identifier"), "default")
        _text(el, _wmts("Format"), "image/png")
        link = ET.SubElement(el, _wmts("TileMatrixSetLink"))
        _text(link, _wmts("TileMatrixSet"), IDENTIFIER)
        ET.SubElement(el, _wmts("ResourceURL"), {
            "format": "image/png",
            "resourceType": "tile",
            "template": resource_template(layer.name),
        })

    @staticmethod
    def _tile_matrix_set(contents: ET.Element) -> None:
        tms = ET.SubElement(contents, _wmts("TileMatrixSet"))
        _text(tms, _ows("Identifier"), IDENTIFIER)
        _text(tms, _ows("SupportedCRS"), SUPPORTED_CRS)
        for z in range(MIN_ZOOM, MAX_ZOOM + 1):
            tm = ET.SubElement(tms, _wmts("TileMatrix"))
            _text(tm, _ows("Identifier"), str(z))
            _text(tm, _wmts("ScaleDenominator"), repr(BASE_SCALE_DENOMINATOR / (1 << z)))
            _text(tm, _wmts("TopLeftCorner"), f"{ORIGIN_X} {ORIGIN_Y}")
            _text(tm, _wmts("TileWidth"), str(TILE_SIZE))
            _text(tm, _wmts("TileHeight"), str(TILE_SIZE))
            _text(tm, _wmts("MatrixWidth"), str(grid.matrix_dimension(z)))
            _text(tm, _wmts("MatrixHeight"), str(grid.matrix_dimension(z)))
