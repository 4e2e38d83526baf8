"""
Drawing I/O utilities.

Handles the point-list interchange format for stored drawings and loading a
folder of drawings into a ReferenceLibrary.

Record format (one drawing per .json file):
    {"drawingName": "circle", "size": 3,
     "points": [{"x": 0.0, "y": 0.0, "z": 0.0}, ...]}
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass

import numpy as np

from .errors import DrawingError, DrawingFormatError
from .library import ReferenceLibrary
from .normalize import as_point_array, set_first_as_origin

logger = logging.getLogger(__name__)


@dataclass
class DrawingRecord:
    """
    Single stored drawing.

    points is an Mx3 array in the drawing's own coordinates.
    """
    name: str
    points: np.ndarray

    @property
    def size(self) -> int:
        return len(self.points)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "drawingName": self.name,
            "size": self.size,
            "points": [
                {"x": float(x), "y": float(y), "z": float(z)}
                for x, y, z in self.points
            ]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], name: Optional[str] = None) -> "DrawingRecord":
        """
        Parse a record dict.

        Args:
            data: Parsed JSON object
            name: Name to use when the record has no drawingName

        Raises:
            DrawingFormatError: if the points array is missing or malformed
        """
        if not isinstance(data, dict):
            raise DrawingFormatError("Drawing record must be a JSON object")

        raw_points = data.get("points")
        if not isinstance(raw_points, list):
            raise DrawingFormatError("Record does not contain a valid points array")

        try:
            # Missing coordinates default to 0, as the original serializer did
            coords = [
                [float(p.get("x", 0.0)), float(p.get("y", 0.0)), float(p.get("z", 0.0))]
                for p in raw_points
            ]
            points = as_point_array(coords)
        except (AttributeError, TypeError, ValueError) as e:
            raise DrawingFormatError(f"Invalid point in record: {e}") from e

        size = data.get("size")
        if size is not None and size != len(points):
            logger.warning(f"Record size {size} does not match {len(points)} points")

        return cls(name=data.get("drawingName") or name or "", points=points)


def load_drawing_from_json(text: str, name: Optional[str] = None) -> DrawingRecord:
    """
    Parse one drawing from JSON text.

    Raises:
        DrawingFormatError: if the text is empty or not a valid record
    """
    if not text:
        raise DrawingFormatError("JSON string is empty")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DrawingFormatError(f"Failed to parse JSON: {e}") from e
    return DrawingRecord.from_dict(data, name=name)


def load_drawing(path: Path) -> DrawingRecord:
    """
    Load one drawing from a .json file.

    The file stem is used as the name when the record has none.

    Raises:
        FileNotFoundError: if the file does not exist
        DrawingFormatError: if the file is not a valid record
    """
    path = Path(path)
    with open(path) as f:
        text = f.read()
    return load_drawing_from_json(text, name=path.stem)


def save_drawing(record: DrawingRecord, path: Path) -> None:
    """Save a drawing record as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(record.to_dict(), f, indent=2)
    logger.info(f"Saved drawing '{record.name}' ({record.size} points): {path}")


def load_library(directory: Path, set_first_as_origin_on_load: bool = True) -> ReferenceLibrary:
    """
    Load every top-level *.json drawing in a directory.

    Drawings are keyed by file stem. Files that cannot be read are skipped.
    A missing directory gives an empty library. The returned library is
    always marked ready.

    Args:
        directory: Folder with drawing files
        set_first_as_origin_on_load: Translate each drawing to its first point

    Returns:
        ReferenceLibrary, ready
    """
    directory = Path(directory)
    library = ReferenceLibrary()

    if not directory.is_dir():
        logger.warning(f"Drawing folder not found: {directory}")
        library.mark_ready()
        return library

    for path in sorted(directory.glob("*.json")):
        try:
            record = load_drawing(path)
        except (OSError, DrawingError) as e:
            logger.error(f"Failed to load {path}: {e}")
            continue

        points = record.points
        if set_first_as_origin_on_load:
            points = set_first_as_origin(points)
        library.add(path.stem, points)

    logger.info(f"Loaded {len(library)} drawing(s) from {directory}")
    library.mark_ready()
    return library
