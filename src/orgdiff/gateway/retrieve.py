"""Locate component files inside a retrieved source tree.

``sf project retrieve start`` lays files out differently depending on the
project configuration, so lookups try the usual source roots first and fall
back to a recursive search.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

__all__ = [
    "SOURCE_ROOTS",
    "candidate_paths",
    "locate_content_file",
    "locate_bundle_dir",
    "list_bundle_files",
]

SOURCE_ROOTS: Tuple[Tuple[str, ...], ...] = (
    ("force-app", "main", "default"),
    ("force-app", "default"),
    ("main", "default"),
    ("default",),
    (),
)

# category -> (directory, file suffix)
SINGLE_FILE_LAYOUTS: Dict[str, Tuple[str, str]] = {
    "ApexClass": ("classes", ".cls"),
    "ApexTrigger": ("triggers", ".trigger"),
    "ApexPage": ("pages", ".page"),
    "ApexComponent": ("components", ".component"),
    "PermissionSet": ("permissionsets", ".permissionset-meta.xml"),
}

BUNDLE_DIRECTORIES: Dict[str, str] = {
    "LightningComponentBundle": "lwc",
    "AuraDefinitionBundle": "aura",
    "ExperienceBundle": "experiences",
    "WaveTemplateBundle": "waveTemplates",
}

FALLBACK_EXTENSIONS = (".js", ".html", ".css", ".xml", ".json", ".ts")


def _directory_for(category: str) -> str:
    return BUNDLE_DIRECTORIES.get(category, category.lower())


def candidate_paths(root: Path, category: str, entry_name: str) -> List[Path]:
    """Likely file locations for an entry, most specific first."""
    paths = []
    for parts in SOURCE_ROOTS:
        base = root.joinpath(*parts)
        if category in SINGLE_FILE_LAYOUTS:
            directory, suffix = SINGLE_FILE_LAYOUTS[category]
            paths.append(base / directory / f"{entry_name}{suffix}")
        else:
            directory = _directory_for(category)
            for ext in FALLBACK_EXTENSIONS:
                paths.append(base / directory / entry_name / f"{entry_name}{ext}")
                paths.append(base / directory / f"{entry_name}{ext}")
    return paths


def _matches(file_name: str, category: str, entry_name: str) -> bool:
    if category == "ApexClass":
        return file_name.startswith(f"{entry_name}.cls") and not file_name.endswith(".cls-meta.xml")
    if category == "ApexTrigger":
        return file_name.startswith(f"{entry_name}.trigger") and not file_name.endswith(".trigger-meta.xml")
    if entry_name not in file_name:
        return False
    # Companion -meta.xml files only count when named after the entry itself
    return not file_name.endswith("-meta.xml") or f"{entry_name}." in file_name


def locate_content_file(root: Path, category: str, entry_name: str) -> Optional[Path]:
    """Find the main file of an entry in a retrieved tree.

    Args:
        root: Retrieve output directory
        category: Category name
        entry_name: Entry name

    Returns:
        Path to the file, or None when nothing matches
    """
    for path in candidate_paths(root, category, entry_name):
        if path.is_file():
            return path

    for path in sorted(root.rglob("*")):
        if path.is_file() and _matches(path.name, category, entry_name):
            return path

    return None


def locate_bundle_dir(root: Path, category: str, entry_name: str) -> Optional[Path]:
    """Find the directory holding a composite entry's member files."""
    directory = _directory_for(category)
    for parts in SOURCE_ROOTS:
        bundle = root.joinpath(*parts, directory, entry_name)
        if bundle.is_dir():
            return bundle

    for path in sorted(root.rglob(entry_name)):
        if path.is_dir():
            return path

    return None


def list_bundle_files(bundle_dir: Path) -> List[str]:
    """Sorted POSIX paths of every file under a bundle directory."""
    return sorted(path.relative_to(bundle_dir).as_posix() for path in bundle_dir.rglob("*") if path.is_file())
