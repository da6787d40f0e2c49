"""Lexical import scanning for Python sources.

This is a best-effort, line-oriented scan. It does not evaluate conditional
imports, aliases or re-exports, and it never parses the source.
"""
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from ..models import ResolvedImport

logger = logging.getLogger(__name__)

IMPORT_PATTERN = re.compile(
    r'^(?:from\s+([\w.]+)\s+import\s+[\w\s,()*]+|import\s+([\w.]+))'
)


def find_imports(file_text: str) -> List[str]:
    if not isinstance(file_text, str):
        return []

    imports = []
    for line in file_text.splitlines():
        match = IMPORT_PATTERN.match(line)
        if not match:
            continue
        specifier = match.group(1) or match.group(2)
        if specifier:
            imports.append(specifier)
    return imports


def candidate_paths(specifier: str) -> List[str]:
    mod = specifier.replace('.', '/').lstrip('/')
    if not mod:
        return []
    return [f"{mod}.py", f"{mod}/__init__.py"]


def resolve_imports(specifiers: Sequence[str], workspace_roots: Sequence[str]) -> Dict[str, ResolvedImport]:
    """Map each resolvable specifier to the first matching file under the roots.

    Specifiers that match nothing (stdlib, third-party, typos) are left out.
    """
    resolved: Dict[str, ResolvedImport] = {}
    for specifier in specifiers:
        if specifier in resolved:
            continue
        match = _resolve_one(specifier, workspace_roots)
        if match is not None:
            resolved[specifier] = match
    return resolved


def _resolve_one(specifier: str, workspace_roots: Sequence[str]) -> Optional[ResolvedImport]:
    for root in workspace_roots:
        for candidate in candidate_paths(specifier):
            path = Path(root) / candidate
            if not path.is_file():
                continue
            try:
                content = path.read_text(encoding='utf-8', errors='ignore')
            except OSError as e:
                logger.warning(f"Could not read imported module {path}: {e}")
                continue
            return ResolvedImport(resolved_path=str(path.resolve()), content=content)
    return None


def build_imported_context(specifiers: Sequence[str], resolved: Dict[str, ResolvedImport]) -> List[Tuple[str, str]]:
    context = []
    seen = set()
    for specifier in specifiers:
        if specifier in resolved and specifier not in seen:
            seen.add(specifier)
            context.append((specifier, resolved[specifier].content))
    return context
