from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml


SOURCE_KINDS = ("html", "rss", "reference")


@dataclass(frozen=True)
class OfficialSource:
    source_id: str
    name: str
    description: str
    kind: str
    url: str
    base_url: str
    priority: str
    tags: list[str]
    author: str
    update_type: str
    update_frequency: str
    reliability: str
    selectors: dict[str, str] = field(default_factory=dict)

    @property
    def scrapable(self) -> bool:
        return self.kind in ("html", "rss")

    def public_info(self) -> dict:
        return {
            "id": self.source_id,
            "name": self.name,
            "description": self.description,
            "url": self.base_url,
            "update_frequency": self.update_frequency,
            "reliability": self.reliability,
        }


def load_official_sources(path: Path) -> list[OfficialSource]:
    if not path.exists():
        return []
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"invalid source catalogue: {path}")

    sources: list[OfficialSource] = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValueError(f"invalid source entry in: {path}")
        kind = str(entry.get("kind") or "html")
        if kind not in SOURCE_KINDS:
            raise ValueError(f"unknown source kind {kind!r} in: {path}")
        name = str(entry["name"])
        sources.append(
            OfficialSource(
                source_id=str(entry["id"]),
                name=name,
                description=str(entry.get("description") or name),
                kind=kind,
                url=str(entry["url"]),
                base_url=str(entry.get("base_url") or entry["url"]),
                priority=str(entry.get("priority") or "normal"),
                tags=[str(t) for t in (entry.get("tags") or [])],
                author=str(entry.get("author") or name),
                update_type=str(entry.get("type") or "news_update"),
                update_frequency=str(entry.get("update_frequency") or "unknown"),
                reliability=str(entry.get("reliability") or "unknown"),
                selectors={str(k): str(v) for k, v in (entry.get("selectors") or {}).items()},
            )
        )
    return sources
