"""
Extraction of fenced code blocks from model output into a normalized file set.

Every helper here is best effort: malformed input yields an empty or default
value, never an exception.
"""

from __future__ import annotations

import json
import logging
import posixpath
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .models import ArtifactFile, CodeBlock

logger = logging.getLogger(__name__)

CODE_FENCE = re.compile(r"```(\w+)?\s*(?://\s*(.+?))?\n([\s\S]*?)```")
DEPENDENCIES_BLOCK = re.compile(r'```json[\s\S]*?"dependencies":\s*{([^}]+)}', re.IGNORECASE)
ENV_BLOCK = re.compile(r"```(?:env|bash|sh)\n([\s\S]*?)```")
ENV_LINE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=")
ENV_REFERENCES = (
    re.compile(r"process\.env\.(\w+)"),
    re.compile(r"import\.meta\.env\.(\w+)"),
    re.compile(r"os\.environ\[\s*[\"'](\w+)[\"']\s*\]"),
    re.compile(r"os\.environ\.get\(\s*[\"'](\w+)[\"']"),
    re.compile(r"os\.getenv\(\s*[\"'](\w+)[\"']"),
)
EXPORTED_SYMBOL = re.compile(r"export\s+(?:default\s+)?(?:function|const|class)\s+(\w+)")
APP_NAME = re.compile(r"(?:app|project|name):\s*[\"`']?([a-z0-9-_]+)[\"`']?", re.IGNORECASE)
PACKAGE_NAME = re.compile(r'"name":\s*"([^"]+)"')
SOURCE_EXTENSION = re.compile(r"\.(ts|tsx|js|jsx|py|rs|go)$")

PLACEHOLDER_MARKERS = ("YOUR_API_KEY_HERE", "TODO:")
MIN_FILE_LENGTH = 10

EXTENSIONS: dict[str, str] = {
    "tsx": ".tsx",
    "jsx": ".jsx",
    "ts": ".ts",
    "js": ".js",
    "python": ".py",
    "py": ".py",
    "rust": ".rs",
    "go": ".go",
    "java": ".java",
    "cpp": ".cpp",
    "c": ".c",
    "sql": ".sql",
    "css": ".css",
    "scss": ".scss",
    "html": ".html",
    "json": ".json",
    "yaml": ".yaml",
    "yml": ".yml",
    "sh": ".sh",
    "bash": ".sh",
    "dockerfile": "Dockerfile",
    "env": ".env",
}

COMMON_DEPENDENCIES: dict[str, str] = {
    "react": "^18.2.0",
    "react-native": "^0.73.0",
    "next": "^14.0.0",
    "express": "^4.18.0",
    "fastapi": "^0.104.0",
    "hono": "^4.0.0",
    "@trpc/server": "^10.45.0",
    "@trpc/client": "^10.45.0",
    "zod": "^3.22.0",
    "prisma": "^5.7.0",
    "@prisma/client": "^5.7.0",
    "stripe": "^14.0.0",
    "jsonwebtoken": "^9.0.2",
    "bcryptjs": "^2.4.3",
}


@dataclass
class ValidationReport:
    valid: bool
    errors: list[str] = field(default_factory=list)


def extract_code_blocks(text: str) -> list[CodeBlock]:
    """Fenced blocks of the form ```lang // filename, empty bodies dropped."""
    blocks: list[CodeBlock] = []
    for match in CODE_FENCE.finditer(text or ""):
        language = match.group(1) or "plaintext"
        filename = (match.group(2) or "").strip() or f"file.{language}"
        content = (match.group(3) or "").strip()
        if content:
            blocks.append(CodeBlock(language=language, filename=filename, content=content))
    return blocks


def filename_from_comment(content: str) -> str | None:
    first_line = content.split("\n", 1)[0].strip()
    for marker in ("//", "#"):
        if first_line.startswith(marker):
            candidate = first_line[len(marker) :].strip()
            if candidate and "." in candidate and " " not in candidate:
                return candidate
    return None


def _extension(language: str, has_react: bool) -> str:
    lang = language.lower()
    if lang == "typescript":
        return ".tsx" if has_react else ".ts"
    if lang == "javascript":
        return ".jsx" if has_react else ".js"
    return EXTENSIONS.get(lang, f".{language}")


def infer_filename(language: str, content: str) -> str:
    from_comment = filename_from_comment(content)
    if from_comment:
        return from_comment

    has_react = any(token in content for token in ("React", "useState", "useEffect"))
    has_export = "export default" in content or "export const" in content
    has_types = "interface " in content or "type " in content
    ext = _extension(language, has_react)

    if "package.json" in content:
        return "package.json"
    if "tsconfig.json" in content:
        return "tsconfig.json"
    if language == "json" and '"name":' in content:
        return "package.json"
    # Conventional names such as Dockerfile carry no extension.
    if not ext.startswith("."):
        return ext

    if has_types and not has_export:
        return f"types{ext}"
    if has_export:
        match = EXPORTED_SYMBOL.search(content)
        if match:
            return f"{match.group(1)}{ext}"
    return f"generated{ext}"


def _with_suffix(path: str, counter: int) -> str:
    base, ext = posixpath.splitext(path)
    return f"{base}-{counter}{ext}"


def normalize_code_blocks(blocks: Iterable[CodeBlock]) -> list[ArtifactFile]:
    """Assign every block a path, unique within the returned list."""
    files: list[ArtifactFile] = []
    taken: set[str] = set()

    for block in blocks:
        path = block.filename
        if not path or path == f"file.{block.language}":
            path = infer_filename(block.language, block.content)

        if path in taken:
            counter = 1
            while _with_suffix(path, counter) in taken:
                counter += 1
            path = _with_suffix(path, counter)

        taken.add(path)
        files.append(ArtifactFile(path=path, content=block.content, language=block.language))
    return files


def extract_dependencies(text: str) -> dict[str, str]:
    """The ``dependencies`` object of the first fenced JSON manifest, else {}."""
    match = DEPENDENCIES_BLOCK.search(text or "")
    if not match:
        return {}
    try:
        parsed = json.loads("{" + match.group(1) + "}")
    except ValueError:
        logger.warning("Could not parse dependencies block; ignoring it")
        return {}
    if not isinstance(parsed, dict):
        return {}
    return {str(name): str(version) for name, version in parsed.items()}


def dependencies_from_manifest(files: Sequence[ArtifactFile]) -> dict[str, str]:
    """dependencies plus devDependencies of a generated package.json."""
    manifest = next((f for f in files if f.path == "package.json"), None)
    if manifest is None:
        return {}
    try:
        data = json.loads(manifest.content)
    except ValueError:
        logger.warning("Failed to parse generated package.json")
        return {}
    if not isinstance(data, dict):
        return {}

    merged: dict[str, str] = {}
    for section in ("dependencies", "devDependencies"):
        values = data.get(section)
        if isinstance(values, dict):
            merged.update({str(k): str(v) for k, v in values.items()})
    return merged


def infer_dependencies(files: Sequence[ArtifactFile]) -> dict[str, str]:
    """Well-known packages imported by the generated sources."""
    content = "\n".join(f.content for f in files)
    return {
        package: version
        for package, version in COMMON_DEPENDENCIES.items()
        if f"from '{package}'" in content or f'from "{package}"' in content
    }


def extract_env_vars(text: str) -> list[str]:
    found: dict[str, None] = {}
    text = text or ""
    for pattern in ENV_REFERENCES:
        for match in pattern.finditer(text):
            found.setdefault(match.group(1))

    block = ENV_BLOCK.search(text)
    if block:
        for line in block.group(1).split("\n"):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            match = ENV_LINE.match(stripped)
            if match:
                found.setdefault(match.group(1))
    return list(found)


def extract_app_name(text: str) -> str | None:
    for pattern in (APP_NAME, PACKAGE_NAME):
        match = pattern.search(text or "")
        if match:
            return match.group(1)
    return None


def validate_generated_code(files: Sequence[ArtifactFile]) -> ValidationReport:
    """Advisory checks; callers log the errors, nothing is blocked here."""
    if not files:
        return ValidationReport(valid=False, errors=["No files generated"])

    errors: list[str] = []
    if not any(SOURCE_EXTENSION.search(f.path) for f in files):
        errors.append("No source code files found")

    for f in files:
        if len(f.content) < MIN_FILE_LENGTH:
            errors.append(f"File {f.path} is too short ({len(f.content)} chars)")
        if any(marker in f.content for marker in PLACEHOLDER_MARKERS):
            errors.append(f"File {f.path} contains placeholder values")

    return ValidationReport(valid=not errors, errors=errors)
