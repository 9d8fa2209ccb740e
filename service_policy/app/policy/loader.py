"""
Policy module loader.
"""

from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Union

from shared.errors import LoadError, ParseError
from shared.logging import get_logger

from .backend import EvaluationBackend
from .models import Module

REGO_EXTENSION = ".rego"

logger = get_logger("policy.loader")


def find_policy_files(paths: Iterable[Union[str, Path]]) -> List[Path]:
    """Collect ``.rego`` files under ``paths``, walking directories recursively."""
    found: List[Path] = []
    seen = set()

    for raw_path in paths:
        path = Path(raw_path)
        if not path.exists():
            raise LoadError(f"path does not exist: {path}", details={"path": str(path)})

        for candidate in _iter_candidates(path):
            resolved = candidate.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            found.append(candidate)

    return found


def _iter_candidates(path: Path) -> Iterator[Path]:
    if path.is_file():
        if path.suffix == REGO_EXTENSION:
            yield path
        return

    for candidate in sorted(path.rglob(f"*{REGO_EXTENSION}")):
        if candidate.is_file():
            yield candidate


def load_modules(paths: Iterable[Union[str, Path]], backend: EvaluationBackend) -> Dict[str, Module]:
    """Read and parse every policy module found under ``paths``.

    Returns modules keyed by filename in discovery order. Raises LoadError if
    nothing was found or a file cannot be read, ParseError (a LoadError) if a
    file is not UTF-8 text, and CompileError if the backend rejects a module.
    """
    paths = list(paths)
    files = find_policy_files(paths)
    if not files:
        raise LoadError(
            f"no policies found in {[str(p) for p in paths]}",
            details={"paths": [str(p) for p in paths]}
        )

    modules: Dict[str, Module] = {}
    for path in files:
        filename = str(path)
        try:
            source = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(filename, f"not UTF-8 text: {e.reason} at byte {e.start}") from e
        except OSError as e:
            raise LoadError(f"read {filename}: {e}", details={"filename": filename}) from e

        modules[filename] = backend.parse_module(filename, source)

    logger.info("Policies loaded", modules=len(modules), backend=backend.name)
    return modules
