"""Keyword-based intent detection, used when Claude analysis is off or fails.

Scores follow one rule: a utility agent or workflow is only suggested at a
score of 4 or more.
"""

import re
from pathlib import Path

SUGGESTION_THRESHOLD = 4
TDD_THRESHOLD = 3

EXPLICIT_COMMAND_PATTERN = re.compile(
    r"^/(reactree|rails-dev|rails-feature|rails-debug|rails-refactor)", re.IGNORECASE
)

QUESTION_OPENER_PATTERN = re.compile(
    r"^(what|how|why|when|where|who|which|is|are|can|could|would|should|do|does|did"
    r"|explain|tell me|describe|show me|help me understand)"
)
ACTION_VERB_PATTERN = re.compile(r"(implement|build|create|add|fix|debug|refactor|update|change|modify)")
REFERENCE_QUESTION_PATTERN = re.compile(
    r"(difference between|meaning of|example of|documentation|syntax|reference|definition)"
)
EXPLICIT_ACTION_PATTERN = re.compile(r"(implement|build|create|fix|debug|refactor)")

RAILS_TERMS_PATTERN = re.compile(
    r"model|controller|view|migration|activerecord|activejob|actioncable|turbo|stimulus"
    r"|hotwire|sidekiq|rspec|rails|ruby|gem|bundle|rake"
)
RAILS_PATHS_PATTERN = re.compile(
    r"app/models|app/controllers|app/services|app/components|app/views|config/routes"
    r"|db/migrate|spec/"
)

# Each agent has tiers of (pattern, score); the first matching tier counts.
# Agents are checked in order and a later match overrides an earlier one.
UTILITY_AGENT_PATTERNS: list[tuple[str, list[tuple[re.Pattern[str], int]]]] = [
    (
        "file-finder",
        [
            (re.compile(r"find .* file|find all .* files|where is .* file|locate .* file"
                        r"|list .* files|show .* files|what files"), 5),
            (re.compile(r"what.s in .* directory|show .* folder|list .* directory"), 5),
            (re.compile(r"find .* models?|find .* controllers?|find .* services?"
                        r"|find .* components?|find .* views?|find .* specs?"), 4),
        ],
    ),
    (
        "code-line-finder",
        [
            (re.compile(r"where is .* defined|find definition|go to definition"), 6),
            (re.compile(r"where is .* method|find .* method|locate .* method"), 6),
            (re.compile(r"find .* usages|find all (calls|references|uses)|who calls|what calls"
                        r"|where is .* used|where is .* called"), 5),
            (re.compile(r"find .* class|find .* module|find .* constant"), 4),
        ],
    ),
    (
        "git-diff-analyzer",
        [
            (re.compile(r"what changed|show changes|show diff|git diff|diff from|diff between"
                        r"|compare .* to"), 6),
            (re.compile(r"who changed|who modified|git blame|last modified|commit history"
                        r"|recent commits|when was .* changed"), 5),
            (re.compile(r"difference between .* and|changes in .* branch|what.s new in"
                        r"|changes since"), 4),
        ],
    ),
    (
        "log-analyzer",
        [
            (re.compile(r"show .* log|check .* log|read .* log|view .* log|development.log"
                        r"|production.log|server log|rails log"), 6),
            (re.compile(r"errors? in .* log|log errors?|recent errors?|exceptions? in log"
                        r"|failures? in log"), 5),
            (re.compile(r"slow queries?|sql .* log|performance .* log"), 4),
        ],
    ),
]

# Workflow scoring: (pattern, points) added per matching rule.
FEATURE_RULES = [
    (re.compile(r"add|implement|build|create|develop|make|generate|set up|introduce"), 2),
    (re.compile(r"new feature|feature request|user can|users should|ability to"), 2),
    (re.compile(r"^(as a|i want|so that|user story|feature:|acceptance criteria)"), 5),
]
DEBUG_RULES = [
    (re.compile(r"fix|debug|troubleshoot|diagnose|investigate|resolve|repair"), 2),
    (re.compile(r"error|bug|issue|problem|broken|not working|failing|fails"), 2),
    (re.compile(r"nomethoderror|argumenterror|typeerror|syntaxerror|activerec.*error"
                r"|validationerror|routingerror"), 5),
    (re.compile(r"(line [0-9]+|\.rb:[0-9]+|backtrace|stack trace|exception)"), 5),
]
REFACTOR_RULES = [
    (re.compile(r"refactor|restructure|reorganize|cleanup|clean up|improve|optimize"), 2),
    (re.compile(r"code smell|duplication|dry|extract|inline|rename|move"), 2),
    (re.compile(r"code smell|technical debt|decouple|separation of concerns"), 5),
]
TDD_RULES = [
    (re.compile(r"test.first|tdd|test.driven|write tests? first|red.green.refactor"), 3),
    (re.compile(r"with tests?|ensure coverage|comprehensive tests?|full coverage"), 2),
]


def _normalize(prompt: str) -> str:
    return prompt.strip().lower()


def _score(prompt: str, rules: list[tuple[re.Pattern[str], int]]) -> int:
    return sum(points for pattern, points in rules if pattern.search(prompt))


def is_explicit_command(prompt: str) -> bool:
    """True for slash commands that already pick a workflow."""
    return bool(EXPLICIT_COMMAND_PATTERN.search(prompt.strip()))


def is_simple_question(prompt: str) -> bool:
    """Short prompts, plain questions and documentation lookups."""
    if len(prompt.split()) < 5:
        return True

    lowered = _normalize(prompt)
    if QUESTION_OPENER_PATTERN.search(lowered) and not ACTION_VERB_PATTERN.search(lowered):
        return True

    return bool(REFERENCE_QUESTION_PATTERN.search(lowered))


def has_explicit_action(prompt: str) -> bool:
    return bool(EXPLICIT_ACTION_PATTERN.search(_normalize(prompt)))


def is_rails_related(prompt: str, project_dir: Path | None = None) -> bool:
    """Rails vocabulary in the prompt, or a Rails Gemfile in the project."""
    lowered = _normalize(prompt)
    if RAILS_TERMS_PATTERN.search(lowered) or RAILS_PATHS_PATTERN.search(lowered):
        return True

    gemfile = (project_dir or Path.cwd()) / "Gemfile"
    try:
        return "rails" in gemfile.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False


def detect_utility_agent(prompt: str) -> tuple[str | None, int]:
    """Return (agent, score); (None, 0) when no utility pattern matches."""
    lowered = _normalize(prompt)
    agent: str | None = None
    score = 0
    for name, tiers in UTILITY_AGENT_PATTERNS:
        for pattern, tier_score in tiers:
            if pattern.search(lowered):
                agent, score = name, tier_score
                break
    return agent, score


def detect_workflow_intent(prompt: str) -> tuple[str, int, bool]:
    """Return (intent, score, tdd_mode); intent is "none" below the threshold.

    Ties go to feature, then debug.
    """
    lowered = _normalize(prompt)
    scores = [
        ("feature", _score(lowered, FEATURE_RULES)),
        ("debug", _score(lowered, DEBUG_RULES)),
        ("refactor", _score(lowered, REFACTOR_RULES)),
    ]
    intent, best = scores[0]
    for name, value in scores[1:]:
        if value > best:
            intent, best = name, value

    tdd_mode = _score(lowered, TDD_RULES) >= TDD_THRESHOLD

    if best < SUGGESTION_THRESHOLD:
        return "none", 0, False
    return intent, best, tdd_mode
