"""Intent Analyzer - classify a user prompt with the Claude CLI.

Flow for one prompt:
1. Manifest (cached or regenerated) -> manifest_generation_failed on error
2. CLI availability check -> claude_not_available
3. Prompt assembly: instructions + manifest + user request + output schema
4. CLI call with a hard deadline -> timeout_or_error
5. JSON extraction, unwrapping one .result envelope if needed -> invalid_response
6. primary_intent validation -> missing_fields

Every failure is returned as an AnalysisError value, never raised.
"""

import argparse
import json
import math
import sys
from pathlib import Path
from typing import Any

from .audit import AuditLogger
from .config import RAW_OUTPUT_LIMIT
from .manifest_generator import ManifestGenerator
from .models.intent import (
    AgentRecommendation,
    AnalysisError,
    ErrorKind,
    IntentAnalysisResult,
)
from .runner import ClaudeRunner
from .validators.schemas import validate_intent

INTENT_KEY = "primary_intent"
SELF_TEST_PROMPT = "find all user model files"

# Exit status reported when the executable vanished between lookup and spawn
COMMAND_NOT_FOUND_EXIT_CODE = 127

PROMPT_PREAMBLE = """\
You are an intent classifier for a Rails development assistant. Analyze the user's request and recommend the best agents/skills to handle it.

CLASSIFICATION RULES:
1. Utility intents (quick, specific lookups) → route to utility agents
2. Feature development (new functionality) → route to workflow-orchestrator or feature workflows
3. Debugging (errors, bugs, issues) → route to debug workflow
4. Refactoring (code improvement) → route to refactor workflow
5. Simple questions (conceptual, documentation) → no recommendation (let default handle)

UTILITY AGENTS (for quick, specific tasks):
- file-finder: File discovery by pattern/name/content
- code-line-finder: Find method/class definitions, usages, references
- git-diff-analyzer: Git changes, blame, history, branch comparison
- log-analyzer: Parse Rails logs, find errors, slow queries

WORKFLOW SKILLS (for complex multi-step tasks):
- reactree-dev: Full 6-phase Rails development workflow
- reactree-feature: Feature-driven development with user stories
- reactree-debug: Systematic debugging with root cause analysis
- reactree-refactor: Safe refactoring with test preservation

AVAILABLE RESOURCES:
"""

PROMPT_OUTPUT_SCHEMA = """\
Respond with ONLY valid JSON in this exact format:
{
  "primary_intent": "utility|feature|debug|refactor|question|general",
  "confidence": 0.0-1.0,
  "recommended_agents": [
    {"name": "agent-name", "reason": "brief reason", "priority": 1}
  ],
  "recommended_skills": ["skill-name"],
  "tdd_mode": false,
  "system_message": "Brief message to show user about recommended action"
}

If confidence < 0.6 or it's a simple question, return:
{"primary_intent": "question", "confidence": 0.0, "recommended_agents": [], "recommended_skills": [], "tdd_mode": false, "system_message": ""}
"""

_DECODER = json.JSONDecoder()


def build_prompt(user_prompt: str, manifest_json: str) -> str:
    """Assemble the classification prompt.

    The user prompt is embedded verbatim: it is context for the model, not a
    structured field.
    """
    return (
        f"{PROMPT_PREAMBLE}{manifest_json.rstrip()}\n"
        f"\nUSER REQUEST:\n\"{user_prompt}\"\n\n"
        f"{PROMPT_OUTPUT_SCHEMA}"
    )


def _intent_in(value: Any) -> dict[str, Any] | None:
    """Depth-first search for the first object carrying primary_intent itself."""
    if isinstance(value, dict):
        if INTENT_KEY in value:
            return value
        children = value.values()
    elif isinstance(value, list):
        children = value
    else:
        return None
    for child in children:
        found = _intent_in(child)
        if found is not None:
            return found
    return None


def find_intent_object(text: str) -> dict[str, Any] | None:
    """Return the first JSON object embedded in ``text`` that has a primary_intent key."""
    index = text.find("{")
    while index != -1:
        try:
            value, _ = _DECODER.raw_decode(text, index)
            found = _intent_in(value)
        except (json.JSONDecodeError, RecursionError):
            found = None
        if found is not None:
            return found
        index = text.find("{", index + 1)
    return None


def unwrap_result(text: str) -> str | None:
    """Text one ``.result`` level down, or None if ``text`` is not an envelope."""
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return None
    if isinstance(document, str):
        return document
    if isinstance(document, dict) and document.get("result") is not None:
        inner = document["result"]
        return inner if isinstance(inner, str) else json.dumps(inner)
    return None


def extract_intent(output: str) -> dict[str, Any] | AnalysisError:
    """Pull the classification object out of raw CLI output."""
    candidate = find_intent_object(output)
    if candidate is None:
        unwrapped = unwrap_result(output)
        if unwrapped is not None:
            candidate = find_intent_object(unwrapped)

    if candidate is None:
        return AnalysisError(
            error=ErrorKind.INVALID_RESPONSE, raw=output[:RAW_OUTPUT_LIMIT]
        )

    ok, _ = validate_intent(candidate)
    if not ok:
        return AnalysisError(error=ErrorKind.MISSING_FIELDS)
    return candidate


def _present(value: Any) -> bool:
    # null and false count as absent, like a jq `//` default
    return value is not None and value is not False


def _as_confidence(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(confidence):
        return 0.0
    return min(max(confidence, 0.0), 1.0)


def _as_priority(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 1


def _as_agents(value: Any) -> list[AgentRecommendation]:
    if not isinstance(value, list):
        return []
    agents: list[AgentRecommendation] = []
    for item in value:
        if isinstance(item, str) and item:
            agents.append(AgentRecommendation(name=item))
        elif isinstance(item, dict) and item.get("name"):
            agents.append(
                AgentRecommendation(
                    name=str(item["name"]),
                    reason=str(item.get("reason") or ""),
                    priority=_as_priority(item.get("priority", 1)),
                )
            )
    return agents


def _as_skills(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    skills: list[str] = []
    for item in value:
        if isinstance(item, str) and item:
            skills.append(item)
        elif isinstance(item, dict) and item.get("name"):
            skills.append(str(item["name"]))
    return skills


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def parse_result(raw: dict[str, Any] | AnalysisError) -> IntentAnalysisResult | AnalysisError:
    """Normalize an extracted classification, or propagate its error."""
    if isinstance(raw, AnalysisError):
        return raw
    if _present(raw.get("error")):
        try:
            kind = ErrorKind(raw["error"])
        except ValueError:
            return AnalysisError(error=ErrorKind.INVALID_RESPONSE, raw=str(raw)[:RAW_OUTPUT_LIMIT])
        exit_code = raw.get("exit_code")
        detail = raw.get("raw")
        return AnalysisError(
            error=kind,
            exit_code=exit_code if isinstance(exit_code, int) else None,
            raw=detail if isinstance(detail, str) else None,
        )

    intent = raw.get(INTENT_KEY)
    message = raw.get("system_message")
    return IntentAnalysisResult(
        intent=str(intent) if _present(intent) else "general",
        confidence=_as_confidence(raw.get("confidence")),
        recommended_agents=_as_agents(raw.get("recommended_agents")),
        recommended_skills=_as_skills(raw.get("recommended_skills")),
        tdd_mode=_as_bool(raw.get("tdd_mode")),
        message=str(message) if _present(message) else "",
    )


class IntentAnalyzer:
    """Classifies prompts by delegating to the Claude CLI."""

    def __init__(
        self,
        runner: ClaudeRunner | None = None,
        audit: AuditLogger | None = None,
    ) -> None:
        self.runner = runner or ClaudeRunner()
        self.audit = audit

    def is_available(self) -> bool:
        return self.runner.is_available()

    def build_prompt(self, user_prompt: str, manifest_json: str) -> str:
        return build_prompt(user_prompt, manifest_json)

    def analyze(self, user_prompt: str, manifest_json: str) -> dict[str, Any] | AnalysisError:
        """Classify ``user_prompt``.

        Returns:
            The extracted classification object, or an AnalysisError.
        """
        if not self.is_available():
            return self._fail(AnalysisError(error=ErrorKind.CLAUDE_NOT_AVAILABLE))

        prompt = self.build_prompt(user_prompt, manifest_json)

        try:
            exit_code, output, metrics = self.runner.run(prompt)
        except OSError:
            return self._fail(
                AnalysisError(error=ErrorKind.TIMEOUT_OR_ERROR, exit_code=COMMAND_NOT_FOUND_EXIT_CODE)
            )
        except ValueError:
            # Arguments the OS cannot pass, e.g. an embedded NUL
            return self._fail(AnalysisError(error=ErrorKind.TIMEOUT_OR_ERROR))

        if self.audit:
            self.audit.log(
                "CLAUDE_CALL",
                exit_code=exit_code,
                timeout=metrics.get("timeout"),
                duration_ms=metrics.get("duration_ms"),
            )

        if exit_code != 0:
            return self._fail(AnalysisError(error=ErrorKind.TIMEOUT_OR_ERROR, exit_code=exit_code))

        extracted = extract_intent(output)
        if isinstance(extracted, AnalysisError):
            return self._fail(extracted)

        if self.audit:
            self.audit.log("ANALYSIS_OK", intent=extracted.get(INTENT_KEY))
        return extracted

    def parse_result(self, raw: dict[str, Any] | AnalysisError) -> IntentAnalysisResult | AnalysisError:
        return parse_result(raw)

    def _fail(self, error: AnalysisError) -> AnalysisError:
        if self.audit:
            self.audit.log("ANALYSIS_FAILED", error=error.error.value, exit_code=error.exit_code)
        return error


def perform_intent_analysis(
    user_prompt: str,
    generator: ManifestGenerator | None = None,
    analyzer: IntentAnalyzer | None = None,
    audit: AuditLogger | None = None,
) -> dict[str, Any] | AnalysisError:
    """Manifest lookup followed by CLI analysis.

    The manifest is obtained first; the CLI availability check only happens
    inside ``analyze``, so a broken plugin directory reports
    manifest_generation_failed even when the CLI is also missing.
    """
    generator = generator or ManifestGenerator(audit=audit)
    analyzer = analyzer or IntentAnalyzer(audit=audit)

    try:
        manifest = generator.get_cached_or_generate(force_refresh=False)
    except (OSError, ValueError) as e:
        if audit:
            audit.log("ANALYSIS_FAILED", error=ErrorKind.MANIFEST_GENERATION_FAILED.value, reason=str(e))
        return AnalysisError(error=ErrorKind.MANIFEST_GENERATION_FAILED)

    return analyzer.analyze(user_prompt, manifest)


def self_test(generator: ManifestGenerator, analyzer: IntentAnalyzer) -> None:
    """Print a quick health report: CLI availability, manifest counts, a sample analysis."""
    print("Testing Claude Analyzer...")
    print()

    print(f"Claude CLI available: {'YES' if analyzer.is_available() else 'NO (will use fallback)'}")
    print()

    print("Testing manifest generation...")
    try:
        manifest = json.loads(generator.get_cached_or_generate(force_refresh=True))
    except (OSError, json.JSONDecodeError) as e:
        print(f"  Manifest generation failed: {e}")
        manifest = {}
    print(f"  Agents: {len(manifest.get('agents', []))}")
    print(f"  Skills: {len(manifest.get('skills', []))}")
    print()

    if analyzer.is_available():
        print("Testing intent analysis...")
        result = perform_intent_analysis(SELF_TEST_PROMPT, generator=generator, analyzer=analyzer)
        rendered = result.to_dict() if isinstance(result, AnalysisError) else result
        print(f"  Input: '{SELF_TEST_PROMPT}'")
        print(f"  Result: {json.dumps(rendered)}")
        print()

    print("Self-test complete.")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the analyzer."""
    parser = argparse.ArgumentParser(
        prog="reactree-analyzer",
        description="Classify prompt intent with the Claude CLI",
    )
    parser.add_argument(
        "--test",
        action="store_true",
        help="Run the self-test",
    )
    parser.add_argument(
        "--prompt",
        help="Analyze this prompt and print the normalized result as JSON",
    )
    parser.add_argument(
        "--plugin-dir",
        help="Plugin directory containing agents/ and skills/",
    )
    parser.add_argument(
        "--cache-file",
        help="Path to the manifest cache file",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Claude CLI timeout in seconds (default: 10)",
    )
    parser.add_argument(
        "--audit-log",
        help="Path to audit log file (optional)",
    )

    args = parser.parse_args(argv)

    audit = AuditLogger(Path(args.audit_log)) if args.audit_log else None
    generator = ManifestGenerator(
        plugin_dir=Path(args.plugin_dir) if args.plugin_dir else None,
        cache_path=Path(args.cache_file) if args.cache_file else None,
        audit=audit,
    )
    try:
        runner = ClaudeRunner(timeout=args.timeout) if args.timeout is not None else ClaudeRunner()
    except ValueError as e:
        parser.error(str(e))
    analyzer = IntentAnalyzer(runner=runner, audit=audit)

    if args.test:
        self_test(generator, analyzer)
        return 0

    if args.prompt is not None:
        result = parse_result(
            perform_intent_analysis(args.prompt, generator=generator, analyzer=analyzer, audit=audit)
        )
        if isinstance(result, AnalysisError):
            print(json.dumps(result.to_dict()))
        else:
            print(result.model_dump_json())
        return 0

    parser.print_usage()
    return 0


if __name__ == "__main__":
    sys.exit(main())
