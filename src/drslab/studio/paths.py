"""
Workspace path helpers and file tree construction.

Workspace paths are relative POSIX paths without a leading slash
("src/App.tsx"). The terminal's working directory is displayed in shell form
("/" or "/src/").
"""

import posixpath
from typing import Any, Optional

LANGUAGE_BY_EXTENSION = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "scss",
    ".json": "json",
    ".md": "markdown",
    ".sh": "shell",
    ".bash": "shell",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".toml": "toml",
    ".sql": "sql",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".rb": "ruby",
    ".php": "php",
    ".txt": "plaintext",
}


def normalize_path(path: str) -> str:
    """
    Normalise a user-supplied path to a workspace path.

    Backslashes become slashes, empty and "." segments are dropped and ".."
    never climbs above the workspace root.

    >>> normalize_path("/src//./components/../App.tsx")
    'src/App.tsx'
    >>> normalize_path("../../etc/passwd")
    'etc/passwd'
    """
    parts: list[str] = []
    for part in path.replace("\\", "/").split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if parts:
                parts.pop()
            continue
        parts.append(part)
    return "/".join(parts)


def cwd_to_dir(cwd: str) -> str:
    """Shell-style cwd ("/src/") to a workspace directory ("src")."""
    return normalize_path(cwd)


def dir_to_cwd(directory: str) -> str:
    """Workspace directory ("src") to shell-style cwd ("/src/")."""
    directory = normalize_path(directory)
    return f"/{directory}/" if directory else "/"


def resolve(cwd: str, target: str) -> str:
    """Resolve a terminal argument against the current working directory."""
    if target.startswith("/"):
        return normalize_path(target)
    return normalize_path(posixpath.join(cwd_to_dir(cwd), target))


def detect_language(path: str) -> str:
    """Language tag for syntax highlighting, inferred from the extension."""
    _, ext = posixpath.splitext(path.lower())
    return LANGUAGE_BY_EXTENSION.get(ext, "plaintext")


def list_directory(paths: list[str], directory: str) -> list[str]:
    """
    Direct children of a directory, derived from the set of file paths.

    Args:
        paths: All file paths in the workspace
        directory: Workspace directory ("" for the root)

    Returns:
        Sorted child names (files and folders alike)
    """
    prefix = f"{directory}/" if directory else ""
    entries = {
        p[len(prefix):].split("/")[0] for p in paths if p.startswith(prefix) and p != directory
    }
    entries.discard("")
    return sorted(entries)


def is_directory(paths: list[str], directory: str) -> bool:
    """A directory exists when at least one file lives below it."""
    if not directory:
        return True
    prefix = f"{directory}/"
    return any(p.startswith(prefix) for p in paths)


def path_conflict(paths: list[str], path: str) -> Optional[str]:
    """
    Existing path that stops a file from being placed at ``path``.

    That is ``path`` itself when it is a folder, or an ancestor of ``path``
    that is a file. Returns None when the path is free (or is already a file).
    """
    if is_directory(paths, path):
        return path
    existing = set(paths)
    parts = path.split("/")
    for i in range(1, len(parts)):
        ancestor = "/".join(parts[:i])
        if ancestor in existing:
            return ancestor
    return None


def build_file_tree(paths: list[str]) -> list[dict[str, Any]]:
    """
    Build a nested file tree from flat paths.

    Folders come before files; siblings are ordered by name.

    Returns:
        List of ``{"name", "path", "type", "children"}`` nodes; files have
        ``children`` set to None.
    """
    root: dict[str, Any] = {"children": []}
    index: dict[str, dict[str, Any]] = {"": root}

    for path in paths:
        parts = [p for p in path.split("/") if p]
        for i, part in enumerate(parts):
            current_path = "/".join(parts[: i + 1])
            if current_path in index:
                existing = index[current_path]
                if i < len(parts) - 1 and existing["children"] is None:
                    # A file shadowed by a folder of the same name
                    existing["type"] = "folder"
                    existing["children"] = []
                continue
            is_file = i == len(parts) - 1
            node = {
                "name": part,
                "path": current_path,
                "type": "file" if is_file else "folder",
                "children": None if is_file else [],
            }
            index["/".join(parts[:i])]["children"].append(node)
            index[current_path] = node

    def sort_nodes(nodes: list[dict[str, Any]]) -> None:
        nodes.sort(key=lambda n: (n["type"] != "folder", n["name"].lower(), n["name"]))
        for node in nodes:
            if node["children"]:
                sort_nodes(node["children"])

    sort_nodes(root["children"])
    return root["children"]
