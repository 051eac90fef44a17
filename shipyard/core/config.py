"""Typed project configuration loading.

This module turns ``.shipyard.toml`` into frozen dataclasses. Everything is
validated at load time: pattern strings must compile, target names must be
known, and every target kind gets its own payload dataclass so concrete
targets never read loosely-typed options at publish time.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, cast, get_args

from .checksum import HASH_ALGORITHMS, HASH_FORMATS, HashAlgorithm, HashFormat
from .filters import PatternError, compile_pattern
from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_obj_list,
    as_str_dict,
    get_bool,
    get_list,
    get_number,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "CONFIG_FILENAME",
    "ArtifactsConfig",
    "ChecksumsPayload",
    "CommandPayload",
    "ConfigError",
    "GitHubConfig",
    "PackageSpec",
    "ProjectConfig",
    "PublishConfig",
    "StatusConfig",
    "TargetConfig",
    "TargetName",
    "TargetPayload",
    "WorkspacePayload",
    "load_config",
    "parse_config",
]

CONFIG_FILENAME = ".shipyard.toml"

ProviderName = Literal["github", "none"]
TargetName = Literal["command", "workspace", "checksums"]

PROVIDER_NAMES: tuple[str, ...] = get_args(ProviderName)
TARGET_NAMES: tuple[str, ...] = get_args(TargetName)

DEFAULT_RELEASE_BRANCH_PREFIX = "release/"
DEFAULT_POLL_INTERVAL = 30.0
DEFAULT_BUILD_TIMEOUT = 60 * 60.0
DEFAULT_LOOKUP_TIMEOUT = 10 * 60.0


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    owner: str
    repo: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True, slots=True)
class ArtifactsConfig:
    """Where artifacts come from.

    ``workflow`` and ``names`` only apply to the github provider: they narrow
    which workflow runs and which run artifacts are fetched.
    """

    provider: ProviderName = "none"
    workflow: str | None = None
    names: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class StatusConfig:
    provider: ProviderName = "none"
    contexts: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class PublishConfig:
    release_branch_prefix: str = DEFAULT_RELEASE_BRANCH_PREFIX
    required_artifacts: tuple[str, ...] = ()
    poll_interval: float = DEFAULT_POLL_INTERVAL
    build_timeout: float = DEFAULT_BUILD_TIMEOUT
    lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT


# -----------------------------------------------------------------------------
# Target payloads (one per target kind)
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CommandPayload:
    command: tuple[str, ...]
    allow_empty: bool = False


@dataclass(frozen=True, slots=True)
class PackageSpec:
    name: str
    version: str | None = None
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class WorkspacePayload:
    command: tuple[str, ...]
    packages: tuple[PackageSpec, ...]


@dataclass(frozen=True, slots=True)
class ChecksumsPayload:
    output: str
    algorithms: tuple[HashAlgorithm, ...] = ("sha256",)
    format: HashFormat = "hex"


type TargetPayload = CommandPayload | WorkspacePayload | ChecksumsPayload


@dataclass(frozen=True, slots=True)
class TargetConfig:
    """Common target fields plus the kind-specific payload."""

    name: TargetName
    payload: TargetPayload
    id: str | None = None
    include: str | None = None
    exclude: str | None = None

    @property
    def target_id(self) -> str:
        if self.id:
            return f"{self.name}[{self.id}]"
        return self.name


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Main configuration container."""

    github: GitHubConfig | None = None
    artifacts: ArtifactsConfig = field(default_factory=ArtifactsConfig)
    status: StatusConfig = field(default_factory=StatusConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    targets: tuple[TargetConfig, ...] = ()


# -----------------------------------------------------------------------------
# Parsing
# -----------------------------------------------------------------------------


def _check_patterns(patterns: tuple[str, ...], where: str) -> Result[None, ConfigError]:
    for p in patterns:
        try:
            compile_pattern(p)
        except PatternError as e:
            return Err(ConfigError(f"{where}: {e}"))
    return Ok(None)


def _parse_provider(table: StrDict, where: str) -> Result[ProviderName, ConfigError]:
    name = get_str(table, "provider") or "none"
    if name not in PROVIDER_NAMES:
        return Err(
            ConfigError(f"{where}.provider: unknown provider '{name}' (expected: github, none)")
        )
    return Ok(cast(ProviderName, name))


def _parse_github(data: Mapping[str, object]) -> Result[GitHubConfig | None, ConfigError]:
    table = get_table(data, "github")
    if table is None:
        return Ok(None)
    owner = get_str(table, "owner")
    repo = get_str(table, "repo")
    if owner is None or repo is None:
        return Err(ConfigError("github: both 'owner' and 'repo' are required"))
    return Ok(GitHubConfig(owner=owner, repo=repo))


def _parse_artifacts(data: Mapping[str, object]) -> Result[ArtifactsConfig, ConfigError]:
    table = get_table(data, "artifacts") or {}
    provider = _parse_provider(table, "artifacts")
    if isinstance(provider, Err):
        return provider

    workflow = get_str(table, "workflow")
    names = tuple(get_str_list(table, "names") or ())
    checked = _check_patterns(names + ((workflow,) if workflow else ()), "artifacts")
    if isinstance(checked, Err):
        return checked

    return Ok(ArtifactsConfig(provider=provider.value, workflow=workflow, names=names))


def _parse_status(data: Mapping[str, object]) -> Result[StatusConfig, ConfigError]:
    table = get_table(data, "status") or {}
    provider = _parse_provider(table, "status")
    if isinstance(provider, Err):
        return provider
    contexts = tuple(get_str_list(table, "contexts") or ())
    return Ok(StatusConfig(provider=provider.value, contexts=contexts))


def _parse_publish(data: Mapping[str, object]) -> Result[PublishConfig, ConfigError]:
    table = get_table(data, "publish") or {}
    required = tuple(get_str_list(table, "required_artifacts") or ())
    checked = _check_patterns(required, "publish.required_artifacts")
    if isinstance(checked, Err):
        return checked

    timings: dict[str, float] = {}
    for key, default in (
        ("poll_interval", DEFAULT_POLL_INTERVAL),
        ("build_timeout", DEFAULT_BUILD_TIMEOUT),
        ("lookup_timeout", DEFAULT_LOOKUP_TIMEOUT),
    ):
        value = get_number(table, key)
        if value is None:
            timings[key] = default
            continue
        if value <= 0:
            return Err(ConfigError(f"publish.{key}: must be positive"))
        timings[key] = value

    return Ok(
        PublishConfig(
            release_branch_prefix=get_str(table, "release_branch_prefix")
            or DEFAULT_RELEASE_BRANCH_PREFIX,
            required_artifacts=required,
            poll_interval=timings["poll_interval"],
            build_timeout=timings["build_timeout"],
            lookup_timeout=timings["lookup_timeout"],
        )
    )


def _parse_command(table: StrDict, where: str) -> Result[tuple[str, ...], ConfigError]:
    command = get_str_list(table, "command")
    if not command:
        return Err(ConfigError(f"{where}: 'command' must be a non-empty list of strings"))
    return Ok(tuple(command))


def _parse_packages(table: StrDict, where: str) -> Result[tuple[PackageSpec, ...], ConfigError]:
    raw = get_list(table, "packages")
    if not raw:
        return Err(ConfigError(f"{where}: 'packages' must list at least one package"))

    out: list[PackageSpec] = []
    for i, item in enumerate(raw):
        pkg = as_str_dict(item)
        name = get_str(pkg, "name") if pkg is not None else None
        if pkg is None or name is None:
            return Err(ConfigError(f"{where}.packages[{i}]: 'name' is required"))
        out.append(
            PackageSpec(
                name=name,
                version=get_str(pkg, "version"),
                dependencies=tuple(get_str_list(pkg, "dependencies") or ()),
            )
        )
    return Ok(tuple(out))


def _parse_payload(
    name: TargetName, table: StrDict, where: str
) -> Result[TargetPayload, ConfigError]:
    match name:
        case "command":
            command = _parse_command(table, where)
            if isinstance(command, Err):
                return command
            return Ok(
                CommandPayload(
                    command=command.value,
                    allow_empty=get_bool(table, "allow_empty") or False,
                )
            )
        case "workspace":
            command = _parse_command(table, where)
            if isinstance(command, Err):
                return command
            packages = _parse_packages(table, where)
            if isinstance(packages, Err):
                return packages
            return Ok(WorkspacePayload(command=command.value, packages=packages.value))
        case "checksums":
            output = get_str(table, "output")
            if output is None:
                return Err(ConfigError(f"{where}: 'output' is required"))
            algorithms = tuple(get_str_list(table, "algorithms") or ("sha256",))
            for algo in algorithms:
                if algo not in HASH_ALGORITHMS:
                    return Err(ConfigError(f"{where}: unsupported algorithm '{algo}'"))
            fmt = get_str(table, "format") or "hex"
            if fmt not in HASH_FORMATS:
                return Err(ConfigError(f"{where}: unsupported format '{fmt}'"))
            return Ok(
                ChecksumsPayload(
                    output=output,
                    algorithms=cast(tuple[HashAlgorithm, ...], algorithms),
                    format=cast(HashFormat, fmt),
                )
            )


def _parse_target(item: object, index: int) -> Result[TargetConfig, ConfigError]:
    where = f"targets[{index}]"
    table = as_str_dict(item)
    if table is None:
        return Err(ConfigError(f"{where}: must be a table"))

    name = get_str(table, "name")
    if name is None:
        return Err(ConfigError(f"{where}: 'name' is required"))
    if name not in TARGET_NAMES:
        known = ", ".join(TARGET_NAMES)
        return Err(ConfigError(f"{where}: unknown target '{name}' (known: {known})"))
    target_name = cast(TargetName, name)

    include = get_str(table, "include")
    exclude = get_str(table, "exclude")
    checked = _check_patterns(tuple(p for p in (include, exclude) if p), where)
    if isinstance(checked, Err):
        return checked

    payload = _parse_payload(target_name, table, where)
    if isinstance(payload, Err):
        return payload

    return Ok(
        TargetConfig(
            name=target_name,
            payload=payload.value,
            id=get_str(table, "id"),
            include=include,
            exclude=exclude,
        )
    )


def _parse_targets(data: Mapping[str, object]) -> Result[tuple[TargetConfig, ...], ConfigError]:
    raw = data.get("targets")
    if raw is None:
        return Ok(())
    items = as_obj_list(raw)
    if items is None:
        return Err(ConfigError("targets: must be an array of tables"))

    targets: list[TargetConfig] = []
    seen: set[str] = set()
    for i, item in enumerate(items):
        parsed = _parse_target(item, i)
        if isinstance(parsed, Err):
            return parsed
        tid = parsed.value.target_id
        if tid in seen:
            return Err(
                ConfigError(f"targets[{i}]: duplicate target '{tid}' (set a distinct 'id')")
            )
        seen.add(tid)
        targets.append(parsed.value)
    return Ok(tuple(targets))


def parse_config(data: Mapping[str, object]) -> Result[ProjectConfig, ConfigError]:
    """Build a ProjectConfig from a mapping (parsed TOML)."""
    github = _parse_github(data)
    if isinstance(github, Err):
        return github
    artifacts = _parse_artifacts(data)
    if isinstance(artifacts, Err):
        return artifacts
    status = _parse_status(data)
    if isinstance(status, Err):
        return status
    publish = _parse_publish(data)
    if isinstance(publish, Err):
        return publish
    targets = _parse_targets(data)
    if isinstance(targets, Err):
        return targets

    needs_github = "github" in (artifacts.value.provider, status.value.provider)
    if needs_github and github.value is None:
        return Err(ConfigError("github: [github] owner/repo are required by the github provider"))

    return Ok(
        ProjectConfig(
            github=github.value,
            artifacts=artifacts.value,
            status=status.value,
            publish=publish.value,
            targets=targets.value,
        )
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and syntax errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[ProjectConfig, ConfigError]:
    """Load and validate the project configuration.

    Args:
        path: Path to .shipyard.toml

    Returns:
        Ok(ProjectConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    parsed = parse_config(result.value)
    if isinstance(parsed, Err):
        return Err(ConfigError(parsed.error.message, path=path))
    return parsed
