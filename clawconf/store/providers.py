"""Provider entries as stored in openclaw.json and agent models.json."""

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from clawconf.store.errors import ConfigValidationError

# On-disk key names
BASE_URL_KEY = "baseUrl"
API_KEY_KEY = "apiKey"
API_KIND_KEY = "api"
MODELS_KEY = "models"


def _model_id(record: Any) -> str | None:
    if isinstance(record, str):
        return record or None
    if isinstance(record, dict):
        value = record.get("id") or record.get("name")
        return value if isinstance(value, str) and value else None
    return None


def _index_models(raw_models: list[Any]) -> tuple[list[str], dict[str, Any]]:
    """Model ids in order (first occurrence wins) and the record for each id."""
    models: list[str] = []
    records: dict[str, Any] = {}
    for record in raw_models:
        model_id = _model_id(record)
        if model_id is not None and model_id not in records:
            models.append(model_id)
            records[model_id] = record
    return models, records


@dataclass
class ProviderEntry:
    """
    One named provider definition.

    ``models`` holds model ids. The list read from disk is kept in
    ``raw_models`` and written back verbatim (duplicates and records
    without an id included) as long as ``models`` is unchanged. Unknown
    keys live in ``extra``.
    """

    name: str
    base_url: str | None = None
    api_key: str | None = None
    api_kind: str | None = None
    models: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)
    model_records: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)
    raw_models: list[Any] | None = field(default=None, repr=False, compare=False)

    @property
    def api_key_set(self) -> bool:
        """Whether a key is configured (some files store ``apiKey: true``)."""
        return bool(self.api_key) or self.extra.get(API_KEY_KEY) is True

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "ProviderEntry":
        extra = {
            k: v for k, v in data.items() if k not in (BASE_URL_KEY, API_KEY_KEY, API_KIND_KEY, MODELS_KEY)
        }

        api_key = data.get(API_KEY_KEY)
        if api_key is not None and not isinstance(api_key, str):
            extra[API_KEY_KEY] = api_key
            api_key = None

        models: list[str] = []
        records: dict[str, Any] = {}
        raw_models = data.get(MODELS_KEY)
        if isinstance(raw_models, list):
            models, records = _index_models(raw_models)
        else:
            if raw_models is not None:
                extra[MODELS_KEY] = raw_models
            raw_models = None

        base_url = data.get(BASE_URL_KEY)
        api_kind = data.get(API_KIND_KEY)
        return cls(
            name=name,
            base_url=base_url if isinstance(base_url, str) else None,
            api_key=api_key,
            api_kind=api_kind if isinstance(api_kind, str) else None,
            models=models,
            extra=extra,
            model_records=records,
            raw_models=copy.deepcopy(raw_models),
        )

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        if self.base_url is not None:
            data[BASE_URL_KEY] = self.base_url
        if self.api_key is not None:
            data[API_KEY_KEY] = self.api_key
        if self.api_kind is not None:
            data[API_KIND_KEY] = self.api_kind
        if self.raw_models is not None and _index_models(self.raw_models)[0] == self.models:
            data[MODELS_KEY] = copy.deepcopy(self.raw_models)
        elif self.models or MODELS_KEY not in self.extra:
            data[MODELS_KEY] = [
                self.model_records.get(model_id, {"id": model_id, "name": model_id})
                for model_id in self.models
            ]
        return data

    def summary(self) -> dict[str, Any]:
        """Display form without secret material."""
        return {
            "base_url": self.base_url,
            "api_key_set": self.api_key_set,
            "api": self.api_kind,
            "models_count": len(self.models),
        }


def parse_providers(
    raw: Any, path: str, section: str = "providers", file: Path | None = None
) -> dict[str, ProviderEntry]:
    """Parse a provider map, raising ConfigValidationError on a bad shape."""
    if not isinstance(raw, dict):
        raise ConfigValidationError(section, path, "must be an object mapping provider names to settings", file)

    providers: dict[str, ProviderEntry] = {}
    for name, value in raw.items():
        if not isinstance(value, dict):
            raise ConfigValidationError(section, f"{path}.{name}", "provider settings must be an object", file)
        providers[name] = ProviderEntry.from_dict(name, value)
    return providers


def providers_to_dict(providers: dict[str, ProviderEntry]) -> dict[str, Any]:
    return {name: entry.to_dict() for name, entry in providers.items()}


def mask_api_key(api_key: str, visible_chars: int = 4) -> str:
    """Mask an API key for safe display.

    Example: ``"sk-abcdefghijk"`` → ``"sk-*******hijk"``
    """
    if not api_key:
        return ""
    if len(api_key) <= visible_chars:
        return "*" * len(api_key)
    prefix = api_key[:3] if len(api_key) > 3 else ""
    suffix = api_key[-visible_chars:]
    hidden_len = len(api_key) - len(prefix) - visible_chars
    return f"{prefix}{'*' * max(hidden_len, 4)}{suffix}"
