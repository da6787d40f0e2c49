import re
from fnmatch import fnmatchcase
from pathlib import PurePosixPath
from typing import Iterable


def is_test_file_strict(filename: str) -> bool:
    lower = filename.lower()
    if re.match(r'^test_.*\.\w+$', lower):
        return True
    if re.match(r'.*_test\.\w+$', lower):
        return True
    if re.match(r'.*\.test\.\w+$', lower):
        return True
    if re.match(r'.*\.spec\.\w+$', lower):
        return True
    if re.match(r'.*Test\.java$', filename):
        return True
    if re.match(r'.*Tests\.java$', filename):
        return True
    return False


def normalize_relative_path(relative_path: str) -> str:
    return relative_path.replace("\\", "/").strip("/")


def matches_pattern(relative_path: str, pattern: str) -> bool:
    """Match a workspace-relative path against one exclusion glob.

    `**/name/**` matches when any directory segment is `name`; `**/name`
    matches the file's base name. Anything else is matched against the whole
    path. Matching is case-insensitive.
    """
    path = normalize_relative_path(relative_path).lower()
    pattern = pattern.lower()
    parts = PurePosixPath(path).parts
    if not parts:
        return False

    if pattern.startswith("**/") and pattern.endswith("/**"):
        segment = pattern[3:-3]
        return any(fnmatchcase(part, segment) for part in parts[:-1])

    if pattern.startswith("**/") and "/" not in pattern[3:]:
        return fnmatchcase(parts[-1], pattern[3:])

    return fnmatchcase(path, pattern.replace("**/", "*").replace("/**", "*"))


def matches_any_pattern(relative_path: str, patterns: Iterable[str]) -> bool:
    return any(matches_pattern(relative_path, p) for p in patterns)


def matches_directory_pattern(dir_name: str, patterns: Iterable[str]) -> bool:
    """True when a `**/name/**` pattern excludes a directory called dir_name."""
    name = dir_name.lower()
    for pattern in patterns:
        pattern = pattern.lower()
        if pattern.startswith("**/") and pattern.endswith("/**") and fnmatchcase(name, pattern[3:-3]):
            return True
    return False


def contains_keyword(relative_path: str, keywords: Iterable[str]) -> bool:
    lower = normalize_relative_path(relative_path).lower()
    return any(k.lower() in lower for k in keywords if k)
