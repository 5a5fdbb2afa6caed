import json, logging, time, typing as t
from pathlib import Path

import yaml

from . import config
from .database import _describe_table_sqlite

logger = logging.getLogger(__name__)


class EntityMeta(t.TypedDict, total=False):
    table: str
    maxPageSize: int

class RegistryEntry(t.TypedDict):
    table: str
    columns: dict[str, str]  # name -> TYPE_CATEGORY
    loadedAt: str
    maxPageSize: int

class Registry:
    def __init__(self, entities_path: t.Optional[Path] = None):
        self.entities_path = entities_path
        self.entities_cfg: dict[str, EntityMeta] = {}
        self.columns_cache: dict[str, RegistryEntry] = {}

    def _path(self) -> Path:
        return Path(self.entities_path or config.ENTITIES_FILE)

    def load_entities(self) -> None:
        path = self._path()
        if not path.exists():
            raise RuntimeError(f"Entity mapping file not found: {path}")
        with path.open("r", encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                cfg = yaml.safe_load(f) or {}
            else:
                cfg = json.load(f)
        ents = cfg.get("entities", {})
        norm: dict[str, EntityMeta] = {}
        for k, v in ents.items():
            if not isinstance(v, dict) or "table" not in v:
                raise RuntimeError(f"Bad entity mapping for {k}: {v}")
            item: EntityMeta = {"table": v["table"]}
            if "maxPageSize" in v:
                item["maxPageSize"] = int(v["maxPageSize"])
            norm[k] = item
        self.entities_cfg = norm
        self.columns_cache = {}
        logger.info("Loaded %d entities from %s", len(norm), path)

    def _describe(self, meta: EntityMeta) -> RegistryEntry:
        return {
            "table": meta["table"],
            "columns": _describe_table_sqlite(meta["table"]),
            "loadedAt": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "maxPageSize": int(meta.get("maxPageSize", config.GLOBAL_MAX_PAGE_SIZE)),
        }

    def ensure_entity(self, name: str) -> RegistryEntry:
        if name not in self.entities_cfg:
            raise KeyError(f"Unknown entity: {name}")
        cfg = self.entities_cfg[name]
        cached = self.columns_cache.get(name)
        if cached and cached.get("table") == cfg["table"] and cached["columns"]:
            return cached
        entry = self._describe(cfg)
        if not entry["columns"]:
            raise RuntimeError(f"Table {cfg['table']!r} for entity {name!r} has no columns")
        self.columns_cache[name] = entry
        return entry

    def refresh_all(self) -> dict[str, str]:
        """Re-read the entities file and re-describe every table."""
        self.load_entities()
        summaries: dict[str, str] = {}
        for name, meta in self.entities_cfg.items():
            try:
                entry = self._describe(meta)
                if not entry["columns"]:
                    summaries[name] = f"error: table {meta['table']!r} has no columns"
                    continue
                self.columns_cache[name] = entry
                summaries[name] = f"ok ({len(entry['columns'])} cols)"
            except Exception as e:
                logger.error("Failed to describe %s: %s", name, e)
                summaries[name] = f"error: {e}"
        return summaries
