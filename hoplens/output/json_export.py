"""
JSON export for HopLens
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..mtr import MTR
from .. import __version__


class JsonExporter:
    """
    Export MTR statistics to JSON format.

    Each hop keeps the field names consumers of mtr-style JSON expect
    (sent, loss_percent, avg_ms, packet_list_ms, ...).
    """

    def export(self, mtr: MTR, output_path: Optional[Path] = None) -> dict:
        """
        Export MTR statistics to JSON.

        Args:
            mtr: MTR whose rounds have run
            output_path: Optional file path to write

        Returns:
            JSON-serializable dict
        """
        data = {
            "meta": {
                "version": __version__,
                "generator": "HopLens",
                "generated_at": datetime.now().isoformat()
            },
            **mtr.to_dict(),
        }

        if output_path:
            self._write_file(data, output_path)

        return data

    def _write_file(self, data: dict, path: Path):
        """Write JSON to file"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)


def export_json(mtr: MTR, output_path: Optional[Path] = None) -> dict:
    """Convenience function for JSON export"""
    exporter = JsonExporter()
    return exporter.export(mtr, output_path)
