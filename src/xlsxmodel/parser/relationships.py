from __future__ import annotations

import logging

from ..errors import RelationshipNotFoundError
from ..model import Relationship
from .namespaces import PACKAGE_REL_NS
from .package import Package, normalize_part_path
from .utils import rels_path_for, resolve_target

logger = logging.getLogger(__name__)


def parse_relationships(package: Package, part_path: str) -> dict[str, Relationship] | None:
    """Decode the manifest that belongs to ``part_path``; None when it does not exist."""
    rels_path = rels_path_for(normalize_part_path(part_path))
    if not package.has_part(rels_path):
        return None

    root = package.read_xml(rels_path)
    rels: dict[str, Relationship] = {}
    for rel in root.findall(f"{{{PACKAGE_REL_NS}}}Relationship"):
        rel_id = rel.attrib.get("Id")
        target = rel.attrib.get("Target")
        if not rel_id or target is None:
            continue
        if rel.attrib.get("TargetMode", "").lower() == "external":
            rels[rel_id] = Relationship(id=rel_id, type=rel.attrib.get("Type", ""), target=target, mode="external")
            continue
        rels[rel_id] = Relationship(
            id=rel_id,
            type=rel.attrib.get("Type", ""),
            target=resolve_target(normalize_part_path(part_path), target),
        )
    return rels


class RelationshipResolver:
    """Maps ``r:id`` references of one owning part to their targets."""

    def __init__(self, package: Package) -> None:
        self._package = package
        self._manifests: dict[str, dict[str, Relationship] | None] = {}

    def manifest(self, part_path: str) -> dict[str, Relationship] | None:
        key = normalize_part_path(part_path).lower()
        if key not in self._manifests:
            manifest = parse_relationships(self._package, part_path)
            if manifest is None:
                logger.debug("No relationship manifest for %s", part_path)
            self._manifests[key] = manifest
        return self._manifests[key]

    def relationships_for(self, part_path: str) -> list[Relationship]:
        manifest = self.manifest(part_path)
        if manifest is None:
            return []
        return list(manifest.values())

    def resolve(self, part_path: str, rel_id: str) -> Relationship | None:
        manifest = self.manifest(part_path)
        if manifest is None:
            return None
        rel = manifest.get(rel_id)
        if rel is None:
            raise RelationshipNotFoundError(rel_id, part=rels_path_for(normalize_part_path(part_path)))
        return rel

    def find_by_type(self, part_path: str, type_name: str) -> list[Relationship]:
        return [rel for rel in self.relationships_for(part_path) if rel.type_name == type_name]
