import logging

from quorum.models import ArtifactFile, CodeBlock
from quorum.parser import (
    dependencies_from_manifest,
    extract_app_name,
    extract_code_blocks,
    extract_dependencies,
    extract_env_vars,
    infer_dependencies,
    infer_filename,
    normalize_code_blocks,
    validate_generated_code,
)


def _paths(text: str) -> list[str]:
    return [f.path for f in normalize_code_blocks(extract_code_blocks(text))]


def test_unnamed_blocks_get_unique_generated_names() -> None:
    text = "```typescript\nconst a = 1;\n```\n\n```typescript\nconst b = 2;\n```"
    assert _paths(text) == ["generated.ts", "generated-1.ts"]


def test_inline_filename_is_kept() -> None:
    [block] = extract_code_blocks("```ts // src/app.ts\nconst a = 1;\n```")
    assert block == CodeBlock(language="ts", filename="src/app.ts", content="const a = 1;")


def test_untagged_block_is_plaintext() -> None:
    [block] = extract_code_blocks("```\nhello there\n```")
    assert block.language == "plaintext"
    assert block.filename == "file.plaintext"


def test_empty_blocks_are_dropped() -> None:
    assert extract_code_blocks("```ts\n\n```") == []
    assert extract_code_blocks("") == []


def test_filename_from_leading_comment() -> None:
    assert _paths("```python\n# app/main.py\nprint('hi')\n```") == ["app/main.py"]
    assert _paths("```js\n// lib/util.js\nmodule.exports = {};\n```") == ["lib/util.js"]


def test_filename_inference() -> None:
    react = "export default function Home() {\n  const [n] = useState(0);\n  return n;\n}"
    assert infer_filename("tsx", react) == "Home.tsx"
    assert infer_filename("typescript", "export const Button = () => null;") == "Button.ts"
    assert infer_filename("typescript", "interface User {\n  id: string;\n}") == "types.ts"
    assert infer_filename("json", '{"name": "shop", "version": "1.0.0"}') == "package.json"
    assert infer_filename("python", "print('hi')") == "generated.py"
    assert infer_filename("dockerfile", "FROM node:20") == "Dockerfile"


def test_collisions_skip_taken_suffixes() -> None:
    blocks = [
        CodeBlock("ts", "a.ts", "const a = 1;"),
        CodeBlock("ts", "a-1.ts", "const b = 2;"),
        CodeBlock("ts", "a.ts", "const c = 3;"),
        CodeBlock("dockerfile", "file.dockerfile", "FROM node:20"),
        CodeBlock("dockerfile", "file.dockerfile", "FROM python:3.12"),
    ]

    paths = [f.path for f in normalize_code_blocks(blocks)]

    assert paths == ["a.ts", "a-1.ts", "a-2.ts", "Dockerfile", "Dockerfile-1"]


def test_extract_dependencies() -> None:
    text = (
        "Here is the manifest:\n"
        '```json\n{"dependencies": {"express": "^4.18.0", "zod": "^3.22.0"}}\n```'
    )
    assert extract_dependencies(text) == {"express": "^4.18.0", "zod": "^3.22.0"}
    assert extract_dependencies("no manifest") == {}


def test_malformed_dependencies_are_ignored(caplog) -> None:
    text = '```json\n{"dependencies": {"express": }}\n```'

    with caplog.at_level(logging.WARNING, logger="quorum.parser"):
        assert extract_dependencies(text) == {}

    assert "Could not parse dependencies block" in caplog.text


def test_dependencies_from_manifest() -> None:
    manifest = ArtifactFile(
        path="package.json",
        content='{"dependencies": {"express": "^4"}, "devDependencies": {"vitest": "^1"}}',
        language="json",
    )
    assert dependencies_from_manifest([manifest]) == {"express": "^4", "vitest": "^1"}

    broken = ArtifactFile(path="package.json", content="{", language="json")
    assert dependencies_from_manifest([broken]) == {}
    assert dependencies_from_manifest([]) == {}


def test_infer_dependencies_from_imports() -> None:
    files = [
        ArtifactFile("src/server.ts", "import express from 'express';", "ts"),
        ArtifactFile("src/schema.ts", 'import { z } from "zod";', "ts"),
    ]
    assert infer_dependencies(files) == {"express": "^4.18.0", "zod": "^3.22.0"}


def test_extract_env_vars() -> None:
    text = "\n".join(
        [
            "```ts\nconst url = process.env.API_URL;\n```",
            "```python\ndb = os.environ['DB_URL']\nkey = os.getenv(\"SECRET\")\n```",
            "```env\n# comment\nPORT=3000\nexport TOKEN=abc\nnot a var\nAPI_URL=x\n```",
        ]
    )
    assert extract_env_vars(text) == ["API_URL", "DB_URL", "SECRET", "PORT", "TOKEN"]
    assert extract_env_vars("") == []


def test_extract_app_name() -> None:
    assert extract_app_name("Project: todo-app\nMore text") == "todo-app"
    assert extract_app_name('```json\n{"name": "shop"}\n```') == "shop"
    assert extract_app_name("nothing to see") is None


def test_validate_generated_code() -> None:
    assert validate_generated_code([]).errors == ["No files generated"]

    report = validate_generated_code([ArtifactFile("README.md", "short", "markdown")])
    assert not report.valid
    assert report.errors == [
        "No source code files found",
        "File README.md is too short (5 chars)",
    ]

    placeholder = ArtifactFile("src/index.ts", "const key = 'YOUR_API_KEY_HERE';", "ts")
    assert validate_generated_code([placeholder]).errors == [
        "File src/index.ts contains placeholder values"
    ]

    good = ArtifactFile("src/index.ts", "export const answer = 42;", "ts")
    assert validate_generated_code([good]).valid
