"""Workflow configuration: label tables, submitter identity and policy switches."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigurationError

CONFIG_FILENAME = "workflow.yaml"
ENV_VAR = "TRAVEL_WORKFLOW_CONFIG"


def _default_status_labels() -> dict[str, str]:
    return {"pending": "審査中", "approved": "承認済", "rejected": "却下"}


def _default_mode_labels() -> dict[str, str]:
    return {
        "train": "電車",
        "airplane": "飛行機",
        "bus": "バス",
        "taxi": "タクシー",
        "other": "その他",
    }


def _default_arrange_labels() -> dict[str, str]:
    return {"agency": "SSAによる手配", "self": "自己手配"}


class SubmitterConfig(BaseModel):
    """Identity used for every submission while no auth layer exists."""

    username: str = Field(default="demo", min_length=1)
    password: str = Field(default="demo", min_length=1, repr=False)


class LabelTables(BaseModel):
    """Fixed display labels keyed by enum value."""

    status: dict[str, str] = Field(default_factory=_default_status_labels)
    transportation_mode: dict[str, str] = Field(default_factory=_default_mode_labels)
    arrange_type: dict[str, str] = Field(default_factory=_default_arrange_labels)

    def label(self, table: str, key: str) -> str:
        """Return the label for ``key`` or the key itself when unmapped."""

        return getattr(self, table).get(key, key)


class WorkflowConfig(BaseModel):
    """Settings that shape validation and the status state machine."""

    submitter: SubmitterConfig = Field(default_factory=SubmitterConfig)
    enforce_terminal_states: bool = Field(
        default=True,
        description="Reject transitions out of approved or rejected",
    )
    enforce_date_order: bool = Field(
        default=True,
        description="Reject travelers whose end date precedes the start date",
    )
    labels: LabelTables = Field(default_factory=LabelTables)
    currency_format: str = Field(
        default='"¥"#,##0', description="Excel number format for yen amounts"
    )

    @classmethod
    def from_yaml(cls, content: str, *, source: str | None = None) -> WorkflowConfig:
        """Load configuration from YAML content."""

        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                message=f"Invalid YAML in workflow configuration: {exc}", source=source
            ) from exc
        if not isinstance(data, dict):
            raise ConfigurationError(
                message="Workflow configuration must be a mapping", source=source
            )
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            raise ConfigurationError(
                message=f"Invalid workflow configuration: {exc}", source=source
            ) from exc

    @classmethod
    def from_file(cls, path: str | Path | None = None) -> WorkflowConfig:
        """Load configuration from a YAML file."""

        target_path = Path(path) if path is not None else _default_config_path()
        if target_path is None:
            raise FileNotFoundError(f"No {CONFIG_FILENAME} file found")
        return cls.from_yaml(target_path.read_text(encoding="utf-8"), source=str(target_path))

    @classmethod
    def from_environment(cls, env_var: str = ENV_VAR) -> WorkflowConfig:
        """Load configuration from an environment variable containing YAML."""

        content = os.getenv(env_var)
        if not content:
            raise ValueError(f"Environment variable '{env_var}' is not set or empty")
        return cls.from_yaml(content, source=env_var)

    @classmethod
    def load(cls, path: str | Path | None = None) -> WorkflowConfig:
        """Resolve configuration from a path, the environment, a file, or defaults."""

        if path is not None:
            return cls.from_file(path)
        if os.getenv(ENV_VAR):
            return cls.from_environment()
        if _default_config_path() is not None:
            return cls.from_file()
        return cls()


def _default_config_path() -> Path | None:
    for parent in Path(__file__).resolve().parents:
        candidate = parent / "config" / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None
