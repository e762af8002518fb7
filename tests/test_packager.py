import io
import json
import zipfile

from quorum.models import AppMeta, ArtifactFile, GeneratedApp
from quorum.packager import build_manifest, package_as_zip


def _app(**overrides) -> GeneratedApp:
    values = {
        "name": "todo-app",
        "description": "A todo list",
        "files": [
            ArtifactFile("src/index.ts", "console.log('up');", "typescript"),
            ArtifactFile("src/db.ts", "export const db = {};", "typescript"),
            ArtifactFile(
                "src/i18n.ts", "export const hello = 'h\u00e9llo w\u00f6rld \u2713';", "typescript"
            ),
        ],
        "dependencies": {"express": "^4.18.0"},
        "env_vars": ["DATABASE_URL", "PORT"],
        "setup_instructions": "# Setup Instructions\n",
        "meta": AppMeta(models=["gpt-4o"], total_tokens=1200, total_cost=6.0),
    }
    values.update(overrides)
    return GeneratedApp(**values)


def _unzip(data: bytes) -> dict[str, str]:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {name: zf.read(name).decode("utf-8") for name in zf.namelist()}


def test_archive_contents() -> None:
    app = _app()
    archive = package_as_zip(app)
    members = _unzip(archive)

    assert list(members) == [
        "src/index.ts",
        "src/db.ts",
        "src/i18n.ts",
        "README.md",
        "package.json",
        ".env.example",
        ".meta.json",
    ]
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        for artifact in app.files:
            assert zf.read(artifact.path) == artifact.content.encode("utf-8")
    assert "\u00e9" in members["src/i18n.ts"]
    assert members["README.md"] == "# Setup Instructions\n"
    assert members[".env.example"] == "DATABASE_URL=\nPORT="
    manifest = json.loads(members["package.json"])
    assert manifest["dependencies"] == {"express": "^4.18.0"}
    assert manifest["version"] == "1.0.0"


def test_meta_uses_camel_case_keys() -> None:
    meta = json.loads(_unzip(package_as_zip(_app()))[".meta.json"])

    assert meta["models"] == ["gpt-4o"]
    assert meta["totalTokens"] == 1200
    assert meta["totalCost"] == 6.0
    assert "generatedAt" in meta


def test_optional_entries_skipped_when_empty() -> None:
    members = _unzip(package_as_zip(_app(dependencies={}, env_vars=[])))

    assert "package.json" not in members
    assert ".env.example" not in members


def test_generated_manifest_takes_precedence() -> None:
    generated = ArtifactFile("package.json", '{"name": "from-model"}', "json")

    members = _unzip(package_as_zip(_app(files=[generated])))

    assert json.loads(members["package.json"]) == {"name": "from-model"}


def test_build_manifest_scripts() -> None:
    manifest = build_manifest(_app())
    assert manifest["name"] == "todo-app"
    assert set(manifest["scripts"]) == {"dev", "build", "start"}
