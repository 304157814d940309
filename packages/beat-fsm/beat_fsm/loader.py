"""Load State and Transition definitions from a directory of modules."""
from __future__ import annotations

import importlib.util
import logging
import sys
import zlib
from pathlib import Path
from typing import Iterable, Union

from beat_fsm.state import State
from beat_fsm.transition import Transition

logger = logging.getLogger(__name__)

LoadedDefinition = Union[State, Transition]

#: Module-level name a definition module binds its State or Transition to.
DEFINITION_ATTR = "definition"


class DefinitionCache:
    """Remembers what was loaded from each directory.

    Owned by whoever owns the loader; drop or ``clear()`` it to force a
    reload.
    """

    def __init__(self) -> None:
        self._entries: dict[Path, list[LoadedDefinition]] = {}

    def get(self, directory: Path) -> list[LoadedDefinition] | None:
        return self._entries.get(directory)

    def put(self, directory: Path, definitions: list[LoadedDefinition]) -> None:
        self._entries[directory] = definitions

    def invalidate(self, directory: str | Path) -> None:
        """Forget one directory. No-op if it was never loaded."""
        self._entries.pop(Path(directory).resolve(), None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, directory: object) -> bool:
        if not isinstance(directory, (str, Path)):
            return False
        return Path(directory).resolve() in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class DefinitionLoader:
    """Imports every ``*.py`` file below a directory and collects the
    ``definition`` each one exposes.

    A module is skipped when it fails to import, has no ``definition``, or
    its ``definition`` is neither a State nor a Transition. A definition
    with an empty name is named after its file.

    ```python
    loader = DefinitionLoader()
    machine = StateMachine("Default", loader.load("game/states"))
    ```
    """

    def __init__(self, cache: DefinitionCache | None = None) -> None:
        self.cache: DefinitionCache = cache if cache is not None else DefinitionCache()

    def load(
        self, directory: str | Path, names: Iterable[str] | None = None
    ) -> list[LoadedDefinition]:
        """Return the definitions under ``directory``, optionally only those in ``names``.

        Raises NotADirectoryError if ``directory`` is not a directory.
        """
        root = Path(directory).resolve()
        found = self.cache.get(root)
        if found is None:
            if not root.is_dir():
                raise NotADirectoryError(f"Not a directory: {root}")
            found = self._scan(root)
            self.cache.put(root, found)

        if names is None:
            return list(found)
        wanted = set(names)
        return [d for d in found if d.name in wanted]

    def _scan(self, root: Path) -> list[LoadedDefinition]:
        prefix = f"_beat_fsm_definitions_{zlib.crc32(str(root).encode()):08x}"
        found: list[LoadedDefinition] = []
        for path in sorted(root.rglob("*.py")):
            rel = path.relative_to(root).with_suffix("")
            module_name = ".".join((prefix, *rel.parts))
            definition = _load_module(module_name, path)
            if definition is None:
                continue
            if not definition.name:
                definition.name = path.stem
            found.append(definition)
        logger.debug("Loaded %d definitions from %s", len(found), root)
        return found


def _load_module(module_name: str, path: Path) -> LoadedDefinition | None:
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        logger.debug("Skipping %s: import failed", path, exc_info=True)
        return None

    definition = getattr(module, DEFINITION_ATTR, None)
    if not isinstance(definition, (State, Transition)):
        logger.debug("Skipping %s: no State or Transition bound to %r", path, DEFINITION_ATTR)
        return None
    return definition
