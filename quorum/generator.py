"""
End-to-end application generation: prompt the models, pick the best answer,
turn it into files and package the result.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

from .config import Settings, settings
from .costs import total_cost, total_tokens
from .dispatch import Dispatcher
from .errors import InvalidRequestError, NoValidOutputError, PolicyBlockedError, QuorumError
from .events import ProgressEvent, ProgressStage
from .models import AppMeta, ArtifactFile, GeneratedApp, GenerationRequest, ScoredResult, TaskType
from .packager import package_as_zip
from .parser import (
    dependencies_from_manifest,
    extract_app_name,
    extract_code_blocks,
    extract_dependencies,
    extract_env_vars,
    infer_dependencies,
    normalize_code_blocks,
    validate_generated_code,
)
from .policy import EnforcementResult, enforce
from .prompts import build_prompt, build_system_prompt
from .scanner import ContentScanner
from .scoring import score_results

logger = logging.getLogger(__name__)

MIN_OUTPUT_LENGTH = 100


@dataclass
class GenerationOptions:
    prompt: str
    models: Sequence[str]
    framework: str | None = None
    features: Sequence[str] = field(default_factory=tuple)
    max_parallel: int | None = None
    require_database: bool = False
    require_auth: bool = False
    require_payments: bool = False
    # Subscription tier for the content policy; None skips the gate.
    tier: int | None = None


def select_best_result(results: Sequence[ScoredResult]) -> ScoredResult:
    """Prefer substantial outputs with the most code fences, then the best score."""
    candidates = [r for r in results if r.ok and r.text and len(r.text) > MIN_OUTPUT_LENGTH]
    if candidates:
        return min(candidates, key=lambda r: (-(r.text or "").count("```"), -r.score, r.index))

    usable = [r for r in results if r.ok and r.text]
    if usable:
        logger.warning("No substantial output, using best available result")
        return min(usable, key=lambda r: (-r.score, r.index))

    best = results[0] if results else None
    raise NoValidOutputError("No valid output generated from any model", best=best)


def build_setup_instructions(
    files: Sequence[ArtifactFile], dependencies: dict[str, str], env_vars: Sequence[str]
) -> str:
    python_project = any(f.path.endswith("requirements.txt") for f in files)
    install = "pip install -r requirements.txt" if python_project else "npm install"

    parts = ["# Setup Instructions\n", "## 1. Install Dependencies\n"]
    if dependencies or python_project:
        parts.append(f"```bash\n{install}\n```\n")
    else:
        parts.append("No dependencies required.\n")

    if env_vars:
        lines = "".join(f"{name}=your_value_here\n" for name in env_vars)
        parts.append("## 2. Environment Variables\n")
        parts.append(f"Create a `.env` file with:\n\n```\n{lines}```\n")

    if any("migration" in f.path for f in files):
        parts.append("## 3. Database Setup\n")
        parts.append("```bash\nnpm run migrate\n```\n")

    parts.append("## 4. Run the Application\n")
    parts.append("```bash\nnpm run dev\n```\n")

    parts.append("## Notes\n")
    parts.append(
        "- Replace all placeholder API keys with real values\n"
        "- Review security settings before deploying\n"
        "- Set up proper error monitoring (Sentry, etc.)\n"
    )
    return "\n".join(parts)


class AppGenerator:
    """Generates one application from one set of options.

    An instance owns the app it produces; create one per request.
    """

    def __init__(
        self,
        options: GenerationOptions,
        *,
        dispatcher: Dispatcher | None = None,
        scanner: ContentScanner | None = None,
        config: Settings | None = None,
    ) -> None:
        self.options = options
        self._config = config or settings
        self._dispatcher = dispatcher or Dispatcher(config=self._config)
        self._scanner = scanner
        self.results: list[ScoredResult] = []
        self.enforcement: EnforcementResult | None = None

    def build_request(self) -> GenerationRequest:
        opts = self.options
        # The wrapped prompt is never empty, so check the user's own text.
        if not opts.prompt or not opts.prompt.strip():
            raise InvalidRequestError("Prompt must not be empty")
        return GenerationRequest(
            prompt=build_prompt(
                opts.prompt,
                framework=opts.framework,
                features=opts.features,
                require_database=opts.require_database,
                require_auth=opts.require_auth,
                require_payments=opts.require_payments,
            ),
            models=tuple(opts.models),
            system=build_system_prompt(
                require_database=opts.require_database,
                require_auth=opts.require_auth,
                require_payments=opts.require_payments,
            ),
            temperature=self._config.generation_temperature,
            max_tokens=self._config.generation_max_tokens,
            max_parallel=opts.max_parallel,
        )

    async def generate(self) -> GeneratedApp:
        """Batch mode: the finished app, or a raised QuorumError."""
        logger.info("Starting generation with %s", ", ".join(self.options.models))
        await self._run_models()
        app = self._assemble()
        logger.info(
            "Generation complete: %d file(s), %d dependencies",
            len(app.files),
            len(app.dependencies),
        )
        return app

    async def generate_stream(self) -> AsyncIterator[ProgressEvent]:
        """Streaming mode: progress frames ending in ``complete`` or ``error``."""
        yield ProgressEvent.at(ProgressStage.INITIALIZING, "Initializing models...")
        try:
            yield ProgressEvent.at(ProgressStage.GENERATING, "Generating code with AI models...")
            await self._run_models()

            yield ProgressEvent.at(ProgressStage.VALIDATING, "Validating generated code...")
            app = self._assemble()

            yield ProgressEvent.at(ProgressStage.PACKAGING, "Packaging files...")
            archive = package_as_zip(app)
        except QuorumError as e:
            logger.warning("Generation failed: %s", e.message)
            yield ProgressEvent.error(e.message)
            return
        except Exception as e:
            logger.exception("Generation failed")
            yield ProgressEvent.error(str(e) or type(e).__name__)
            return

        yield ProgressEvent.at(
            ProgressStage.COMPLETE,
            "Generation complete!",
            app=app.summary(),
            zip=base64.b64encode(archive).decode("ascii"),
        )

    async def _run_models(self) -> None:
        raw = await self._dispatcher.dispatch(self.build_request())
        self.results = score_results(raw, TaskType.CODE)

    def _assemble(self) -> GeneratedApp:
        best = select_best_result(self.results)
        text = best.text or ""

        files = normalize_code_blocks(extract_code_blocks(text))
        report = validate_generated_code(files)
        if not report.valid:
            logger.warning("Validation issues: %s", "; ".join(report.errors))

        self._apply_policy(files)

        dependencies = extract_dependencies(text)
        dependencies.update(dependencies_from_manifest(files))
        if not dependencies:
            dependencies = infer_dependencies(files)
        env_vars = extract_env_vars(text)

        return GeneratedApp(
            name=extract_app_name(text) or "generated-app",
            description=self.options.prompt[:200],
            framework=self.options.framework or "unknown",
            files=files,
            dependencies=dependencies,
            env_vars=env_vars,
            setup_instructions=build_setup_instructions(files, dependencies, env_vars),
            meta=AppMeta(
                models=[r.model for r in self.results],
                total_tokens=total_tokens(self.results),
                total_cost=total_cost(self.results),
            ),
        )

    def _apply_policy(self, files: Sequence[ArtifactFile]) -> None:
        if self.options.tier is None:
            return
        code = "\n".join(f.content for f in files)
        self.enforcement = enforce(code, self.options.tier, scanner=self._scanner)
        if not self.enforcement.allowed:
            raise PolicyBlockedError(self.enforcement)
        if self.enforcement.credits_awarded:
            logger.warning("%s", self.enforcement.message)
