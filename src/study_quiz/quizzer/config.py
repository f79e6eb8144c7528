"""Configuration loader for quiz generation and play."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from study_quiz.core import config as core_config
from study_quiz.core import workspace as workspace_mod

CONFIG_FILENAME = "quizzer.toml"
CONFIG_ENV = "STUDY_QUIZ_CONFIG"
ENV_PREFIX = "STUDY_QUIZ_"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_DEFAULTS: dict[str, dict[str, Any]] = {
    "generation": {
        "model": "gpt-4o-mini",
        "temperature": 0.2,
        "max_tokens": 4000,
        "transcription_model": "whisper-1",
        "multiple_choice_count": 15,
        "true_false_count": 5,
        "language": "English",
    },
    "session": {"show_explanations": True},
    "logging": {"level": "INFO"},
}


class QuizzerConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class GenerationConfig:
    model: str
    temperature: float
    max_tokens: int
    transcription_model: str
    multiple_choice_count: int
    true_false_count: int
    language: str


@dataclass(frozen=True)
class QuizzerConfig:
    """Fully resolved configuration for a quizzer run."""

    generation: GenerationConfig
    show_explanations: bool
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of env and file options."""

    model: Optional[str] = None
    language: Optional[str] = None
    show_explanations: Optional[bool] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    config: QuizzerConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def default_config() -> QuizzerConfig:
    """Return the built-in defaults without touching disk or env."""

    return _build_config(_default_table())


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise QuizzerConfigError(str(exc)) from exc

    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        try:
            parsed = core_config.load_toml(requested_path)
            core_config.merge_defaults(table, parsed)
        except core_config.TomlConfigError as exc:
            raise QuizzerConfigError(str(exc)) from exc
        loaded_path = requested_path
    elif config_path is not None or (env_map.get(CONFIG_ENV) or "").strip():
        raise QuizzerConfigError(f"Config file not found: {requested_path}")

    _apply_env(table, env_map)
    _apply_overrides(table, overrides)

    return LoadResult(
        config=_build_config(table),
        layout=layout,
        config_path=loaded_path,
    )


def _default_table() -> MutableMapping[str, MutableMapping[str, Any]]:
    return copy.deepcopy(_DEFAULTS)


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _env_string(env_map: Mapping[str, str], suffix: str) -> Optional[str]:
    value = env_map.get(f"{ENV_PREFIX}{suffix}")
    if value is None:
        return None
    value = value.strip()
    return value or None


def _apply_env(
    table: MutableMapping[str, Any], env_map: Mapping[str, str]
) -> None:
    model = _env_string(env_map, "MODEL")
    if model:
        table["generation"]["model"] = model
    language = _env_string(env_map, "LANGUAGE")
    if language:
        table["generation"]["language"] = language
    level = _env_string(env_map, "LOG_LEVEL")
    if level:
        table["logging"]["level"] = level


def _apply_overrides(
    table: MutableMapping[str, Any], overrides: ConfigOverrides
) -> None:
    if overrides.model:
        table["generation"]["model"] = overrides.model
    if overrides.language:
        table["generation"]["language"] = overrides.language
    if overrides.show_explanations is not None:
        table["session"]["show_explanations"] = overrides.show_explanations
    if overrides.log_level:
        table["logging"]["level"] = overrides.log_level


def _build_config(table: Mapping[str, Any]) -> QuizzerConfig:
    try:
        generation = _build_generation(table["generation"])
        show_explanations = core_config.require_bool(
            table["session"]["show_explanations"],
            field="session.show_explanations",
        )
        level = core_config.require_string(
            table["logging"]["level"], field="logging.level"
        ).upper()
    except core_config.TomlConfigError as exc:
        raise QuizzerConfigError(str(exc)) from exc
    if level not in _LOG_LEVELS:
        raise QuizzerConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    return QuizzerConfig(
        generation=generation,
        show_explanations=show_explanations,
        log_level=level,
    )


def _build_generation(section: Mapping[str, Any]) -> GenerationConfig:
    return GenerationConfig(
        model=core_config.require_string(
            section["model"], field="generation.model"
        ),
        temperature=core_config.require_float_range(
            section["temperature"],
            field="generation.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_tokens=core_config.require_positive_int(
            section["max_tokens"], field="generation.max_tokens"
        ),
        transcription_model=core_config.require_string(
            section["transcription_model"],
            field="generation.transcription_model",
        ),
        multiple_choice_count=core_config.require_positive_int(
            section["multiple_choice_count"],
            field="generation.multiple_choice_count",
        ),
        true_false_count=core_config.require_non_negative_int(
            section["true_false_count"],
            field="generation.true_false_count",
        ),
        language=core_config.require_string(
            section["language"], field="generation.language"
        ),
    )
