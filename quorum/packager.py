"""Serialization of a GeneratedApp into a distributable zip archive."""

from __future__ import annotations

import io
import json
import zipfile
from collections.abc import Iterator
from typing import Any

from .models import GeneratedApp

MANIFEST_SCRIPTS = {
    "dev": "npm run start:dev",
    "build": "npm run build",
    "start": "npm run start:prod",
}


def build_manifest(app: GeneratedApp) -> dict[str, Any]:
    return {
        "name": app.name,
        "version": "1.0.0",
        "description": app.description,
        "dependencies": dict(app.dependencies),
        "scripts": dict(MANIFEST_SCRIPTS),
    }


def iter_archive_entries(app: GeneratedApp) -> Iterator[tuple[str, str]]:
    """Yield (path, content) for every archive member, generated files first."""
    for f in app.files:
        yield f.path, f.content

    yield "README.md", app.setup_instructions

    if app.dependencies:
        yield "package.json", json.dumps(build_manifest(app), indent=2)

    if app.env_vars:
        yield ".env.example", "\n".join(f"{name}=" for name in app.env_vars)

    yield ".meta.json", json.dumps(app.meta.to_dict(), indent=2)


def package_as_zip(app: GeneratedApp) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
        written: set[str] = set()
        for path, content in iter_archive_entries(app):
            # A generated file with the same name as a derived entry takes precedence.
            if path in written:
                continue
            written.add(path)
            zf.writestr(path, content.encode("utf-8"))
    return buffer.getvalue()
