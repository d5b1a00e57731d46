"""Smart intent detection hook for submitted prompts.

Reads the host payload ({"prompt": "..."}) from stdin and prints either
nothing or a suggestion: {"systemMessage": "...", "suppressOutput": false}.

Decision order:
1. Settings (.claude/reactree-rails-dev.local.md): disabled -> silent
2. Explicit /reactree or /rails-* command -> silent
3. Annoyance threshold: low needs an action verb, medium skips simple questions
4. Claude analysis (ai_detection_enabled) -> suggestion if confident
5. Keyword fallback: utility agent, then Rails workflow

The hook exits 0 on every path.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .analyzer import IntentAnalyzer, parse_result, perform_intent_analysis
from .audit import AuditLogger
from .config import CONFIDENCE_THRESHOLD, SETTINGS_FILE, TOOL_NAME
from .frontmatter import extract_field
from .manifest_generator import ManifestGenerator
from .models.intent import IntentAnalysisResult
from .models.settings import HookSettings
from .patterns import (
    SUGGESTION_THRESHOLD,
    detect_utility_agent,
    detect_workflow_intent,
    has_explicit_action,
    is_explicit_command,
    is_rails_related,
    is_simple_question,
)

# agent -> (headline, capabilities, task description)
AGENT_DETAILS: dict[str, tuple[str, str, str]] = {
    "file-finder": (
        "File Search",
        "Fast file discovery by glob pattern, name, or content",
        "Find files matching user request",
    ),
    "code-line-finder": (
        "Code Location",
        "LSP-powered symbol lookup, find definitions with line numbers, find all usages/references",
        "Find code location",
    ),
    "git-diff-analyzer": (
        "Git Analysis",
        "Analyze diffs (staged/unstaged), compare branches/commits, git blame and history",
        "Analyze git changes",
    ),
    "log-analyzer": (
        "Log Analysis",
        "Parse development.log/production.log, find errors and stack traces, identify slow queries",
        "Analyze Rails logs",
    ),
}

# intent -> (headline, skills, benefits)
WORKFLOW_DETAILS: dict[str, tuple[str, list[str], str]] = {
    "feature": (
        "Rails Feature Development",
        ["reactree-dev", "reactree-feature"],
        "parallel execution, working memory caching, automatic skill discovery.",
    ),
    "tdd": (
        "TDD Feature Development",
        ["reactree-feature", "reactree-dev"],
        "test-driven design with a test-first approach.",
    ),
    "debug": (
        "Debugging Task",
        ["reactree-debug"],
        "root cause analysis, memory-assisted debugging, automatic regression test creation.",
    ),
    "refactor": (
        "Refactoring Task",
        ["reactree-refactor"],
        "safe refactoring with test preservation and automatic reference tracking.",
    ),
}


def load_settings(project_dir: Path | None = None) -> HookSettings:
    """Read hook settings from the project's local settings file.

    A missing file gives the defaults; an invalid value keeps that key's default.
    """
    path = (project_dir or Path.cwd()) / SETTINGS_FILE
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return HookSettings()

    values: dict[str, str] = {}
    for key in HookSettings.model_fields:
        raw = extract_field(text, key, allow_block=False).strip()
        if not raw:
            continue
        try:
            HookSettings.model_validate({key: raw})
        except ValidationError:
            continue
        values[key] = raw
    return HookSettings.model_validate(values)


def read_prompt(payload: str) -> str:
    """The ``prompt`` field of the hook payload; "" if absent or unparsable."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        return ""
    if not isinstance(data, dict):
        return ""
    prompt = data.get("prompt")
    return prompt if isinstance(prompt, str) else ""


def render_agent_suggestion(agent: str) -> str:
    headline, capabilities, task = AGENT_DETAILS[agent]
    return (
        f"**{headline} Intent Detected - Routing to Specialist**\n\n"
        f"**ACTION REQUIRED**: Invoke the **{agent}** agent immediately using the Task tool.\n\n"
        f"**Agent Details:**\n"
        f"- subagent_type: `{TOOL_NAME}:{agent}`\n"
        f"- Capabilities: {capabilities}\n\n"
        f"**Invocation Pattern:**\n"
        f"```\nTask tool with:\n  subagent_type: {TOOL_NAME}:{agent}\n"
        f"  description: {task}\n  prompt: [user's original request]\n```"
    )


def render_workflow_suggestion(intent: str, tdd_mode: bool) -> str:
    key = "tdd" if intent == "feature" and tdd_mode else intent
    headline, skills, benefits = WORKFLOW_DETAILS[key]
    skill_lines = "\n".join(f"- skill: `{TOOL_NAME}:{skill}`" for skill in skills)
    return (
        f"**{headline} Intent Detected - Routing to Workflow**\n\n"
        f"**ACTION REQUIRED**: Invoke the ReAcTree workflow immediately using the Skill tool.\n\n"
        f"**Recommended Workflow:**\n{skill_lines}\n\n"
        f"**Invocation Pattern:**\n"
        f"```\nSkill tool with:\n  skill: {TOOL_NAME}:{skills[0]}\n```\n\n"
        f"**Benefits:** {benefits}"
    )


def render_analysis_suggestion(result: IntentAnalysisResult) -> str:
    lines = [f"**{result.intent.capitalize()} Intent Detected** (confidence {result.confidence:.2f})"]
    if result.message:
        lines.extend(["", result.message])
    if result.recommended_agents:
        lines.extend(["", "**Recommended Agents:**"])
        for agent in sorted(result.recommended_agents, key=lambda a: a.priority):
            reason = f" - {agent.reason}" if agent.reason else ""
            lines.append(f"- subagent_type: `{TOOL_NAME}:{agent.name}`{reason}")
    if result.recommended_skills:
        lines.extend(["", "**Recommended Skills:**"])
        lines.extend(f"- skill: `{TOOL_NAME}:{skill}`" for skill in result.recommended_skills)
    if result.tdd_mode:
        lines.extend(["", "Use a test-first approach."])
    return "\n".join(lines)


def detect_with_patterns(prompt: str, project_dir: Path | None = None) -> str | None:
    """Keyword fallback: a utility agent first, then a Rails workflow."""
    agent, score = detect_utility_agent(prompt)
    if agent and score >= SUGGESTION_THRESHOLD:
        return render_agent_suggestion(agent)

    if not is_rails_related(prompt, project_dir):
        return None

    intent, score, tdd_mode = detect_workflow_intent(prompt)
    if intent != "none" and score >= SUGGESTION_THRESHOLD:
        return render_workflow_suggestion(intent, tdd_mode)
    return None


def detect_with_claude(
    prompt: str,
    generator: ManifestGenerator | None = None,
    analyzer: IntentAnalyzer | None = None,
    audit: AuditLogger | None = None,
) -> str | None:
    """Claude-backed suggestion, or None when analysis fails or is not confident."""
    result = parse_result(
        perform_intent_analysis(prompt, generator=generator, analyzer=analyzer, audit=audit)
    )
    if not isinstance(result, IntentAnalysisResult):
        return None
    if result.confidence < CONFIDENCE_THRESHOLD or not result.has_recommendation:
        return None
    return render_analysis_suggestion(result)


def run_hook(
    payload: str,
    project_dir: Path | None = None,
    generator: ManifestGenerator | None = None,
    analyzer: IntentAnalyzer | None = None,
    audit: AuditLogger | None = None,
) -> dict[str, Any] | None:
    """Decide on a suggestion for one hook payload; None means stay silent."""
    prompt = read_prompt(payload)
    if not prompt.strip():
        return None

    settings = load_settings(project_dir)
    if not settings.enabled:
        return None

    if is_explicit_command(prompt):
        return None

    if settings.annoyance_threshold == "low" and not has_explicit_action(prompt):
        return None
    if settings.annoyance_threshold == "medium" and is_simple_question(prompt):
        return None

    message = None
    source = "patterns"
    if settings.ai_detection_enabled:
        message = detect_with_claude(prompt, generator=generator, analyzer=analyzer, audit=audit)
        source = "claude"
    if message is None:
        message = detect_with_patterns(prompt, project_dir)
        source = "patterns"
    if message is None:
        return None

    if audit:
        audit.log("HOOK_SUGGESTION", source=source, mode=settings.detection_mode)
    return {"systemMessage": message, "suppressOutput": False}


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the prompt hook. Always exits 0."""
    parser = argparse.ArgumentParser(
        prog="reactree-intent-hook",
        description="Suggest ReAcTree agents/workflows for a prompt read from stdin",
    )
    parser.add_argument(
        "--project-dir",
        help="Project directory holding .claude/ settings (default: cwd)",
    )
    parser.add_argument(
        "--audit-log",
        help="Path to audit log file (default: under the manifest cache directory)",
    )
    args, _ = parser.parse_known_args(argv)

    audit = AuditLogger(Path(args.audit_log) if args.audit_log else None)

    try:
        payload = sys.stdin.read()
        suggestion = run_hook(
            payload,
            project_dir=Path(args.project_dir) if args.project_dir else None,
            audit=audit,
        )
    except Exception as e:
        # A broken hook must never block the prompt
        audit.log("ERROR", error=f"{type(e).__name__}: {e}")
        return 0

    if suggestion is not None:
        print(json.dumps(suggestion))
    return 0


if __name__ == "__main__":
    sys.exit(main())
