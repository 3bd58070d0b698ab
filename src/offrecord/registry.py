"""Pattern registry for loading and managing secret rules."""

import re
import logging
from pathlib import Path
from typing import Any, Optional

import yaml
import jsonschema

from offrecord.models import PatternRegistration

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schemas" / "rule-schema.json"

_FLAGS = {
    "IGNORECASE": re.IGNORECASE,
    "MULTILINE": re.MULTILINE,
    "DOTALL": re.DOTALL,
    "VERBOSE": re.VERBOSE,
}

# Provider-specific rules (OpenAI, Anthropic, ...) belong to the providers,
# not to this list.
DEFAULT_PATTERNS: list[PatternRegistration] = [
    PatternRegistration(
        name="generic-api-key",
        description="Generic API key patterns",
        patterns=[
            re.compile(r"""api[_-]?key[=:]\s*['"]?([a-zA-Z0-9_-]{20,})['"]?""", re.IGNORECASE),
            re.compile(r"""apikey[=:]\s*['"]?([a-zA-Z0-9_-]{20,})['"]?""", re.IGNORECASE),
        ],
    ),
    PatternRegistration(
        name="generic-secret",
        description="Generic secret patterns",
        patterns=[
            re.compile(r"""secret[=:]\s*['"]?([a-zA-Z0-9_-]{20,})['"]?""", re.IGNORECASE),
            re.compile(
                r"""client[_-]?secret[=:]\s*['"]?([a-zA-Z0-9_-]{20,})['"]?""", re.IGNORECASE
            ),
        ],
    ),
    PatternRegistration(
        name="generic-password",
        description="Password patterns in configuration",
        patterns=[
            re.compile(r"""password[=:]\s*['"]?([^\s'"]{8,})['"]?""", re.IGNORECASE),
            re.compile(r"""passwd[=:]\s*['"]?([^\s'"]{8,})['"]?""", re.IGNORECASE),
        ],
    ),
    PatternRegistration(
        name="bearer-token",
        description="Bearer authentication tokens",
        patterns=[
            re.compile(r"bearer\s+([a-zA-Z0-9_.-]{20,})", re.IGNORECASE),
        ],
    ),
    PatternRegistration(
        name="aws-access-key",
        description="AWS Access Key ID",
        patterns=[
            re.compile(r"AKIA[0-9A-Z]{16}"),
        ],
        env_var="AWS_ACCESS_KEY_ID",
    ),
    PatternRegistration(
        name="aws-secret-key",
        description="AWS Secret Access Key",
        patterns=[
            re.compile(
                r"""aws[_-]?secret[_-]?access[_-]?key[=:]\s*['"]?([a-zA-Z0-9/+=]{40})['"]?""",
                re.IGNORECASE,
            ),
        ],
        env_var="AWS_SECRET_ACCESS_KEY",
    ),
    PatternRegistration(
        name="github-token",
        description="GitHub personal access tokens",
        patterns=[
            re.compile(r"ghp_[a-zA-Z0-9]{36}"),
            re.compile(r"gho_[a-zA-Z0-9]{36}"),
            re.compile(r"ghu_[a-zA-Z0-9]{36}"),
            re.compile(r"ghs_[a-zA-Z0-9]{36}"),
            re.compile(r"ghr_[a-zA-Z0-9]{36}"),
        ],
        env_var="GITHUB_TOKEN",
    ),
    PatternRegistration(
        name="gitlab-token",
        description="GitLab personal access tokens",
        patterns=[
            re.compile(r"glpat-[a-zA-Z0-9_-]{20,}"),
        ],
        env_var="GITLAB_TOKEN",
    ),
    PatternRegistration(
        name="slack-token",
        description="Slack API tokens",
        patterns=[
            re.compile(r"xox[baprs]-[a-zA-Z0-9-]{10,}"),
        ],
        env_var="SLACK_TOKEN",
    ),
    PatternRegistration(
        name="private-key",
        description="Private key blocks",
        patterns=[
            re.compile(
                r"-----BEGIN\s+(?:RSA\s+)?PRIVATE\s+KEY-----[\s\S]*?"
                r"-----END\s+(?:RSA\s+)?PRIVATE\s+KEY-----"
            ),
            re.compile(
                r"-----BEGIN\s+EC\s+PRIVATE\s+KEY-----[\s\S]*?-----END\s+EC\s+PRIVATE\s+KEY-----"
            ),
        ],
    ),
    PatternRegistration(
        name="jwt",
        description="JSON Web Tokens",
        patterns=[
            re.compile(r"eyJ[a-zA-Z0-9_-]*\.eyJ[a-zA-Z0-9_-]*\.[a-zA-Z0-9_-]*"),
        ],
    ),
]


class PatternRegistry:
    """
    Registry of secret rules keyed by name.

    Iteration follows registration order, which is also the order the engine
    applies rules in. Not synchronized: callers sharing one registry across
    threads must lock around mutation themselves.
    """

    def __init__(self, include_defaults: bool = True) -> None:
        """Initialize registry, optionally seeded with the built-in rules."""
        self.patterns: dict[str, PatternRegistration] = {}  # name -> rule
        self._version: int = 0
        if include_defaults:
            self.register_defaults()

    def register_defaults(self) -> None:
        """Register the built-in rules."""
        for registration in DEFAULT_PATTERNS:
            self.register(registration)

    def register(self, registration: PatternRegistration) -> None:
        """Add a rule, replacing any rule with the same name."""
        if registration.name in self.patterns:
            # The replacement keeps the old rule's position.
            logger.debug(f"Pattern {registration.name} already exists, overwriting")

        self.patterns[registration.name] = registration
        self._version += 1

    def unregister(self, name: str) -> bool:
        """Remove a rule by name. Returns True if it existed."""
        if self.patterns.pop(name, None) is None:
            return False
        self._version += 1
        return True

    def get(self, name: str) -> Optional[PatternRegistration]:
        """Get rule by name."""
        return self.patterns.get(name)

    def get_all(self) -> list[PatternRegistration]:
        """Get all rules in registration order."""
        return list(self.patterns.values())

    def has(self, name: str) -> bool:
        """Return True if a rule with this name is registered."""
        return name in self.patterns

    def clear(self) -> None:
        """Remove every rule."""
        self.patterns.clear()
        self._version += 1

    @property
    def size(self) -> int:
        """Number of registered rules."""
        return len(self.patterns)

    @property
    def version(self) -> int:
        """Get current registry version (increments on changes)."""
        return self._version

    def __contains__(self, name: object) -> bool:
        return name in self.patterns

    def __len__(self) -> int:
        """Return number of rules."""
        return len(self.patterns)

    def __repr__(self) -> str:
        """String representation."""
        return f"PatternRegistry(patterns={list(self.patterns.keys())})"


# Process-wide default registry
_global_registry: Optional[PatternRegistry] = None


def get_pattern_registry() -> PatternRegistry:
    """Get the shared default registry, creating it on first use."""
    global _global_registry
    if _global_registry is None:
        _global_registry = PatternRegistry()
    return _global_registry


def reset_pattern_registry() -> None:
    """Drop the shared default registry so the next access rebuilds it."""
    global _global_registry
    _global_registry = None


def load_registry(
    paths: Optional[list[str]] = None,
    include_defaults: bool = True,
    validate_schema: bool = True,
    validate_examples: bool = True,
) -> PatternRegistry:
    """
    Build a registry from the built-in rules plus YAML rule files.

    Args:
        paths: Rule files to load after the defaults
        include_defaults: Whether to seed the registry with built-in rules
        validate_schema: Whether to validate files against the JSON schema
        validate_examples: Whether to check each rule's match/nomatch examples

    Returns:
        PatternRegistry with loaded rules

    Raises:
        ValueError: If a rule file fails schema, regex or example validation
    """
    registry = PatternRegistry(include_defaults=include_defaults)

    for path_str in paths or []:
        path = Path(path_str)
        if not path.exists():
            logger.warning(f"Rule file not found: {path}")
            continue

        logger.info(f"Loading rules from {path}")
        data = _load_yaml_file(path)

        if validate_schema:
            _validate_schema(data)

        for rule_data in (data or {}).get("rules", []):
            registration = _compile_rule(rule_data)
            if validate_examples:
                _validate_examples(registration, rule_data.get("examples") or {})
            registry.register(registration)

    logger.info(f"Loaded {len(registry)} rules")
    return registry


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def _validate_schema(data: dict[str, Any]) -> None:
    """Validate rule file data against JSON schema."""
    with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
        schema = yaml.safe_load(f)

    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        raise ValueError(f"Rule schema validation failed: {e.message}") from e


def _compile_rule(data: dict[str, Any]) -> PatternRegistration:
    """Compile a single rule definition."""
    name = data["name"]

    flags = 0
    for flag_name in data.get("flags", []):
        try:
            flags |= _FLAGS[flag_name]
        except KeyError as e:
            raise ValueError(f"Unknown regex flag for rule {name}: {flag_name}") from e

    compiled = []
    for pattern_str in data.get("patterns", []):
        try:
            compiled.append(re.compile(pattern_str, flags))
        except re.error as e:
            raise ValueError(f"Failed to compile pattern for rule {name}: {e}") from e

    return PatternRegistration(
        name=name,
        patterns=compiled,
        env_var=data.get("env_var"),
        description=data.get("description", ""),
    )


def _validate_examples(registration: PatternRegistration, examples: dict[str, Any]) -> None:
    """Check that match examples are found and nomatch examples are not."""
    errors = []

    def found(example: str) -> bool:
        return any(p.search(example) for p in registration.patterns)

    for example in examples.get("match", []):
        if not found(example):
            errors.append(f"Example should match but doesn't: '{example}'")

    for example in examples.get("nomatch", []):
        if found(example):
            errors.append(f"Example should NOT match but does: '{example}'")

    if errors:
        error_msg = f"Rule {registration.name} example validation failed:\n" + "\n".join(errors)
        raise ValueError(error_msg)

    logger.debug(f"Rule {registration.name} examples validated successfully")
