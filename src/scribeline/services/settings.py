"""Settings dataclasses and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Protocol

from cryptography.fernet import Fernet, InvalidToken

__all__ = [
    "ENDPOINT_PRESETS",
    "EndpointPreset",
    "FernetSecretProvider",
    "SecretProvider",
    "SecretVault",
    "Settings",
    "SettingsStore",
    "apply_preset",
    "redact_secret",
    "requires_api_key",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".scribeline"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_API_KEY_FIELD = "api_key_ciphertext"
_LEGACY_API_KEY_FIELD = "api_key"
_HOSTED_DOMAINS: tuple[str, ...] = ("openai.com", "openrouter.ai")
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}


def _env_flag(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _env_int(value: str) -> int:
    return int(value, 10)


# Environment variable -> (settings field, parser). Parsers raise ValueError on bad input.
_ENV_OVERRIDES: Mapping[str, tuple[str, Callable[[str], Any]]] = {
    "SCRIBELINE_API_KEY": ("api_key", str),
    "SCRIBELINE_BASE_URL": ("base_url", str),
    "SCRIBELINE_MODEL": ("model", str),
    "SCRIBELINE_ORGANIZATION": ("organization", str),
    "SCRIBELINE_DEBUG_LOGGING": ("debug_logging", _env_flag),
    "SCRIBELINE_REQUEST_TIMEOUT": ("request_timeout", float),
    "SCRIBELINE_TEMPERATURE": ("temperature", float),
    "SCRIBELINE_CONTEXT_WINDOW_CHARS": ("context_window_chars", _env_int),
}


@dataclass(slots=True, frozen=True)
class EndpointPreset:
    """Named endpoint shortcut selectable from the command line."""

    name: str
    label: str
    base_url: str


ENDPOINT_PRESETS: Mapping[str, EndpointPreset] = {
    "openai": EndpointPreset("openai", "OpenAI", "https://api.openai.com/v1"),
    "openrouter": EndpointPreset("openrouter", "OpenRouter", "https://openrouter.ai/api/v1"),
    "lmstudio": EndpointPreset(
        "lmstudio", "LM Studio (local)", "http://localhost:1234/v1/chat/completions"
    ),
}


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between sessions."""

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    organization: str | None = None
    temperature: float = 0.2
    request_timeout: float = 90.0
    max_retries: int = 3
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 6.0
    context_window_chars: int = 500
    reject_stale_edits: bool = True
    debug_logging: bool = False
    default_headers: dict[str, str] = field(default_factory=dict)


def requires_api_key(base_url: str) -> bool:
    """Return ``True`` when ``base_url`` points at a hosted provider that needs a key."""

    lowered = (base_url or "").lower()
    return any(domain in lowered for domain in _HOSTED_DOMAINS)


def apply_preset(settings: Settings, name: str) -> Settings:
    """Return ``settings`` pointed at the named endpoint preset."""

    preset = ENDPOINT_PRESETS.get(name.strip().lower())
    if preset is None:
        choices = ", ".join(sorted(ENDPOINT_PRESETS))
        raise ValueError(f"Unknown endpoint preset '{name}' (expected one of: {choices}).")
    LOGGER.debug("Using %s endpoint preset (%s)", preset.label, preset.base_url)
    return replace(settings, base_url=preset.base_url)


class SecretProvider(Protocol):
    """Reversible encoding for the API key at rest."""

    name: str

    def encrypt(self, secret: str) -> str:
        ...

    def decrypt(self, token: str) -> str:
        ...


class FernetSecretProvider:
    """Symmetric encryption keyed by a file that is created on first use."""

    name = "fernet"

    def __init__(self, key_path: Path) -> None:
        self._key_path = key_path
        self._fernet: Fernet | None = None

    def encrypt(self, secret: str) -> str:
        return self._cipher().encrypt(secret.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        return self._cipher().decrypt(token.encode("ascii")).decode("utf-8")

    def _cipher(self) -> Fernet:
        if self._fernet is None:
            self._fernet = Fernet(self._read_or_generate_key())
        return self._fernet

    def _read_or_generate_key(self) -> bytes:
        if self._key_path.exists():
            return self._key_path.read_bytes().strip()
        key = Fernet.generate_key()
        self._key_path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._key_path.with_suffix(".keytmp")
        staging.write_bytes(key)
        if os.name != "nt":  # pragma: no cover - POSIX only
            staging.chmod(0o600)
        staging.replace(self._key_path)
        LOGGER.debug("Generated settings key at %s", self._key_path)
        return key


class SecretVault:
    """Stores the API key as ``<provider>:<payload>`` so the backend is known on load."""

    def __init__(
        self,
        *,
        key_path: Path | None = None,
        provider: SecretProvider | None = None,
    ) -> None:
        self._provider = provider or FernetSecretProvider(key_path or (_SETTINGS_DIR / "settings.key"))

    @property
    def strategy(self) -> str:
        return self._provider.name

    def encrypt(self, secret: str) -> str:
        if not secret:
            return ""
        return f"{self._provider.name}:{self._provider.encrypt(secret)}"

    def decrypt(self, token: str | None) -> str:
        if not token:
            return ""
        backend, sep, payload = token.partition(":")
        if not sep:
            backend, payload = self._provider.name, token
        if backend != self._provider.name:
            raise ValueError(f"API key was stored with unsupported backend '{backend}'")
        try:
            return self._provider.decrypt(payload)
        except InvalidToken as exc:
            raise ValueError("Stored API key could not be decrypted") from exc


class SettingsStore:
    """Reads and writes :class:`Settings` as JSON with an encrypted API key.

    Precedence on load is file, then CLI overrides, then ``SCRIBELINE_*``
    environment variables. Files written by older versions, or holding a
    plaintext ``api_key``, are rewritten in the current format.
    """

    def __init__(self, path: Path | None = None, *, vault: SecretVault | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH
        self._vault = vault or SecretVault(key_path=self._path.with_suffix(".key"))

    @property
    def path(self) -> Path:
        return self._path

    @property
    def vault(self) -> SecretVault:
        return self._vault

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        payload = self._read_payload()
        settings = Settings()
        if payload:
            settings, migrate = self._decode(payload)
            if migrate or payload.get("version") != _SETTINGS_VERSION:
                try:
                    self.save(settings)
                except OSError as exc:
                    LOGGER.warning("Failed to rewrite settings file %s: %s", self._path, exc)

        if overrides:
            settings = _merge_overrides(settings, overrides, source="CLI")
        env = _environment_overrides()
        if env:
            settings = _merge_overrides(settings, env, source="environment")
        return settings

    def save(self, settings: Settings) -> Path:
        """Write ``settings`` atomically, replacing the file only once fully written."""

        data = asdict(settings)
        ciphertext = self._vault.encrypt(data.pop("api_key", "") or "")
        if ciphertext:
            data[_API_KEY_FIELD] = ciphertext
        data["version"] = _SETTINGS_VERSION
        data["secret_backend"] = self._vault.strategy

        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_suffix(".tmp")
        staging.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        staging.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain a JSON object", self._path)
            return {}
        return payload

    def _decode(self, payload: Mapping[str, Any]) -> tuple[Settings, bool]:
        """Build settings from a file payload; the flag asks for a rewrite."""

        known = {item.name for item in fields(Settings)} - {"api_key"}
        data = {key: value for key, value in payload.items() if key in known}
        if "default_headers" in data and not isinstance(data["default_headers"], Mapping):
            LOGGER.debug("Ignoring non-mapping default_headers payload")
            del data["default_headers"]
        try:
            settings = Settings(**data)
        except TypeError as exc:
            LOGGER.warning("Settings payload contained unexpected data: %s", exc)
            settings = Settings()

        migrate = False
        api_key = ""
        ciphertext = payload.get(_API_KEY_FIELD)
        legacy = payload.get(_LEGACY_API_KEY_FIELD)
        if ciphertext:
            try:
                api_key = self._vault.decrypt(ciphertext)
            except ValueError as exc:
                LOGGER.warning("Unable to decrypt API key: %s", exc)
        elif legacy:
            LOGGER.info("Found plaintext API key in %s; re-saving it encrypted.", self._path)
            api_key, migrate = legacy, True
        if api_key:
            settings = replace(settings, api_key=api_key)
        LOGGER.debug("Settings loaded from %s (model=%s)", self._path, settings.model)
        return settings, migrate


def _environment_overrides() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for env_name, (field_name, parse) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None:
            continue
        try:
            values[field_name] = parse(raw)
        except ValueError:
            LOGGER.warning("Ignoring environment override %s=%r", env_name, raw)
    return values


def _merge_overrides(settings: Settings, overrides: Mapping[str, Any], *, source: str) -> Settings:
    known = {item.name for item in fields(Settings)}
    changes = {key: value for key, value in overrides.items() if key in known and value is not None}
    if not changes:
        return settings
    LOGGER.debug("Applying %s settings overrides: %s", source, sorted(changes))
    return replace(settings, **changes)


def redact_secret(value: str) -> str:
    """Mask all but the first and last two characters of ``value``."""

    stripped = (value or "").strip()
    if len(stripped) <= 4:
        return "*" * len(stripped)
    return f"{stripped[:2]}{'*' * (len(stripped) - 4)}{stripped[-2:]}"
