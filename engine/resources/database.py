"""
Static data database.

Handles loading and validation of bundled battle data (monster
templates, stage wave tables, dungeon floor tables).

Layout under the data path:
    schemas/<name>.schema.json
    database/<category>/*.json     (one record or a list of records per file)
"""

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema

# category folder -> schema file
DEFAULT_CATEGORIES: dict[str, str] = {
    "monsters": "monster.schema.json",
    "stages": "stage.schema.json",
    "dungeons": "dungeon.schema.json",
}


class Database:
    """
    Central storage for static battle data.

    Records are plain dicts keyed by their "id". Records that fail
    schema validation are logged and skipped; the rest of the file
    still loads.
    """

    def __init__(self, data_path: Path | str, categories: dict[str, str] | None = None):
        self._data_path = Path(data_path)
        self._categories = dict(categories or DEFAULT_CATEGORIES)
        self._schemas: dict[str, Any] = {}
        self._records: dict[str, dict[str, Any]] = {name: {} for name in self._categories}

        self.logger = logging.getLogger(__name__)

    @property
    def monsters(self) -> dict[str, Any]:
        return self._records.get("monsters", {})

    @property
    def stages(self) -> dict[str, Any]:
        return self._records.get("stages", {})

    @property
    def dungeons(self) -> dict[str, Any]:
        return self._records.get("dungeons", {})

    def load_all(self) -> None:
        """Load all data from disk."""
        self._load_schemas()

        for folder, schema_name in self._categories.items():
            self._records[folder] = self._load_category(folder, schema_name)

        summary = ", ".join(f"{len(records)} {name}" for name, records in self._records.items())
        self.logger.info(f"Loaded {summary}.")

    def _load_schemas(self) -> None:
        """Load JSON schemas."""
        schema_dir = self._data_path / "schemas"
        if not schema_dir.exists():
            self.logger.warning(f"Schema directory not found: {schema_dir}")
            return

        for schema_file in schema_dir.glob("*.schema.json"):
            try:
                with open(schema_file, 'r', encoding='utf-8') as f:
                    self._schemas[schema_file.name] = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error(f"Failed to load schema {schema_file}: {e}")

    def _load_category(self, folder: str, schema_name: str) -> dict[str, Any]:
        """Load all JSON files in a category folder."""
        category_dir = self._data_path / "database" / folder
        data_store: dict[str, Any] = {}

        if not category_dir.exists():
            self.logger.warning(f"Data directory not found: {category_dir}")
            return data_store

        schema = self._schemas.get(schema_name)
        if schema is None:
            self.logger.warning(f"No schema found for {folder} ({schema_name}), skipping category")
            return data_store

        for file_path in sorted(category_dir.glob("*.json")):
            try:
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error(f"Failed to load {file_path}: {e}")
                continue

            # A file holds either one record or a list of them
            items = data if isinstance(data, list) else [data]
            for item in items:
                try:
                    jsonschema.validate(instance=item, schema=schema)
                except jsonschema.ValidationError as e:
                    self.logger.error(f"Validation error in {file_path}: {e.message}")
                    continue

                if item["id"] in data_store:
                    self.logger.warning(f"Duplicate {folder} id {item['id']!r} in {file_path}")
                data_store[item["id"]] = item

        return data_store

    def records(self, category: str) -> dict[str, Any]:
        """All records of a category, keyed by id."""
        return dict(self._records.get(category, {}))

    def get(self, category: str, record_id: str) -> dict[str, Any] | None:
        return self._records.get(category, {}).get(record_id)

    def get_monster(self, monster_id: str) -> dict[str, Any] | None:
        return self.get("monsters", monster_id)

    def get_stage(self, stage_id: str) -> dict[str, Any] | None:
        return self.get("stages", stage_id)

    def get_dungeon(self, dungeon_id: str) -> dict[str, Any] | None:
        return self.get("dungeons", dungeon_id)
