from __future__ import annotations

import logging
import posixpath
import zlib
from pathlib import Path
from typing import BinaryIO
from xml.etree import ElementTree as ET
from zipfile import BadZipFile, ZipFile

from ..errors import ContainerError, DecodeError, PartNotFoundError
from .namespaces import CONTENT_TYPES_PATH
from .utils import local_name

logger = logging.getLogger(__name__)


def normalize_part_path(path: str) -> str:
    return path.lstrip("/").replace("\\", "/")


class Package:
    """Archive handle plus a per-session cache of parsed XML parts.

    Part names are matched case-insensitively. Nothing cached here is
    shared between two Package instances.
    """

    def __init__(self, source: str | Path | BinaryIO) -> None:
        self.source = source
        try:
            self._zip = ZipFile(source)
        except (OSError, BadZipFile) as exc:
            raise ContainerError(f"Cannot open package: {exc}") from exc
        self._index: dict[str, str] = {
            name.lower(): name for name in self._zip.namelist() if not name.endswith("/")
        }
        self._xml_cache: dict[str, ET.Element] = {}
        self._content_types: dict[str, str] | None = None

    def close(self) -> None:
        self._zip.close()
        self._xml_cache.clear()

    def __enter__(self) -> Package:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def find_part(self, path: str) -> str | None:
        return self._index.get(normalize_part_path(path).lower())

    def has_part(self, path: str) -> bool:
        return self.find_part(path) is not None

    def read_bytes(self, path: str) -> bytes:
        name = self.find_part(path)
        if name is None:
            raise PartNotFoundError(normalize_part_path(path))
        try:
            return self._zip.read(name)
        except (OSError, BadZipFile, zlib.error, KeyError) as exc:
            raise ContainerError(f"Cannot read part: {exc}", part=name) from exc

    def read_xml(self, path: str) -> ET.Element:
        key = normalize_part_path(path).lower()
        cached = self._xml_cache.get(key)
        if cached is not None:
            return cached
        payload = self.read_bytes(path)
        try:
            root = ET.fromstring(payload)
        except ET.ParseError as exc:
            raise DecodeError(f"Malformed XML: {exc}", part=normalize_part_path(path)) from exc
        logger.debug("Parsed part %s", path)
        self._xml_cache[key] = root
        return root

    @property
    def content_types(self) -> dict[str, str]:
        if self._content_types is None:
            self._content_types = self._parse_content_types()
        return self._content_types

    def content_type_for(self, path: str) -> str | None:
        return self.content_types.get("/" + normalize_part_path(path).lower())

    def _parse_content_types(self) -> dict[str, str]:
        if not self.has_part(CONTENT_TYPES_PATH):
            return {}

        root = self.read_xml(CONTENT_TYPES_PATH)
        types: dict[str, str] = {}
        defaults: dict[str, str] = {}

        for child in list(root):
            tag = local_name(child.tag)
            if tag == "Default":
                ext = child.attrib.get("Extension", "").lower()
                ctype = child.attrib.get("ContentType", "")
                if ext and ctype:
                    defaults[ext] = ctype
            elif tag == "Override":
                part_name = child.attrib.get("PartName", "")
                ctype = child.attrib.get("ContentType", "")
                if part_name and ctype:
                    types["/" + normalize_part_path(part_name).lower()] = ctype

        for name in self._index:
            with_slash = "/" + name
            if with_slash in types:
                continue
            ext = posixpath.splitext(name)[1].lstrip(".")
            if ext in defaults:
                types[with_slash] = defaults[ext]

        return types
