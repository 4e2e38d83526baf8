"""
Reference drawing library.

A read-only name -> points mapping with an explicit readiness flag. The
library is populated once by a loader (see io.load_library) and must be
marked ready before the matcher will use it.
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterator, List, Optional

import numpy as np

from .normalize import as_point_array

logger = logging.getLogger(__name__)


class ReferenceLibrary(Mapping):
    """
    Named reference drawings.

    Points are stored as read-only Mx3 float64 arrays so concurrent readers
    cannot mutate them. Iteration is in lexicographic name order.
    """

    def __init__(self, drawings: Optional[Mapping[str, Any]] = None, ready: bool = False):
        self._drawings: Dict[str, np.ndarray] = {}
        self._ready = False
        for name, points in (drawings or {}).items():
            self.add(name, points)
        if ready:
            self.mark_ready()

    @classmethod
    def from_dict(cls, drawings: Mapping[str, Any]) -> "ReferenceLibrary":
        """Build a library that is immediately ready."""
        return cls(drawings, ready=True)

    def add(self, name: str, points: Any) -> None:
        """
        Add a drawing while the library is being populated.

        Raises:
            RuntimeError: if the library was already marked ready
            EmptyInputError: if points is empty
        """
        if self._ready:
            raise RuntimeError("Cannot add drawings to a library that is ready")
        arr = as_point_array(points)
        arr.setflags(write=False)
        if name in self._drawings:
            logger.warning(f"Replacing reference drawing '{name}'")
        self._drawings[name] = arr

    def mark_ready(self) -> None:
        self._ready = True
        logger.info(f"Reference library ready with {len(self._drawings)} drawing(s)")

    @property
    def is_ready(self) -> bool:
        return self._ready

    def names(self) -> List[str]:
        return sorted(self._drawings)

    def __getitem__(self, name: str) -> np.ndarray:
        return self._drawings[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._drawings)

    def __repr__(self) -> str:
        return f"ReferenceLibrary({len(self)} drawings, ready={self._ready})"
