"""JSON file sink for exporting records and action events."""

import json
from pathlib import Path
from typing import Any

from listing_desk.exceptions import SinkError
from listing_desk.models.base import Event
from listing_desk.sinks.serialization import to_dict


class JsonFileSink:
    """Output record batches to JSON files and events to JSON Lines files."""

    def __init__(self, output_dir: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write JSON files.
        pretty : bool
            Pretty-print batch JSON output.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.pretty = pretty
        self._counts: dict[str, int] = {}

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Write a batch of records to ``<entity_type>.json``."""
        file_path = self.output_dir / f"{entity_type}.json"
        data = [to_dict(record) for record in records]

        try:
            with open(file_path, "w", encoding="utf-8") as f:
                if self.pretty:
                    json.dump(data, f, indent=2, ensure_ascii=False, default=str)
                else:
                    json.dump(data, f, ensure_ascii=False, default=str)
        except OSError as e:
            raise SinkError(f"Could not write {file_path}: {e}") from e

        self._counts[entity_type] = len(records)

    def publish(self, topic: str, event: Event) -> None:
        """Append one event to ``<topic>.jsonl`` (dots become underscores)."""
        file_path = self.output_dir / (topic.replace(".", "_") + ".jsonl")
        try:
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(to_dict(event), ensure_ascii=False, default=str) + "\n")
        except OSError as e:
            raise SinkError(f"Could not append to {file_path}: {e}") from e

        self._counts[topic] = self._counts.get(topic, 0) + 1

    def close(self) -> None:
        """Print summary."""
        print(f"JSON files written to: {self.output_dir}")
        for entity_type, count in self._counts.items():
            print(f"  {entity_type}: {count} records")
