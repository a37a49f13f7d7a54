"""Panel configuration for pyhomepanel."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyhomepanel._constants import DEFAULT_DATABASE_ROOT, DEFAULT_MQTT_TOPIC_PREFIX, DEFAULT_SPEECH_PROMPT
from pyhomepanel.exceptions import PanelConfigError

STORE_FIREBASE = "firebase"
STORE_MQTT = "mqtt"
STORE_MEMORY = "memory"
STORE_KINDS: tuple[str, ...] = (STORE_FIREBASE, STORE_MQTT, STORE_MEMORY)


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class SpeechSettings:
    """Speech recognition settings.

    These are handed to the recognizer for every voice command.
    """

    language: str = "en-US"
    prompt: str = DEFAULT_SPEECH_PROMPT
    timeout: float = 5.0
    phrase_time_limit: float | None = 8.0
    ambient_adjust_seconds: float = 0.5


@dataclasses.dataclass(frozen=True)
class PanelConfig:
    """Panel configuration.

    Parameters
    ----------
    store : str
        Store backend: ``"firebase"``, ``"mqtt"`` or ``"memory"``.
    database_url : str or None
        Firebase Realtime Database URL
        (e.g. ``"https://my-home-default-rtdb.firebaseio.com"``).
    database_root : str
        Path under the database holding the ``door``/``light``/``window``
        keys. Empty means the database root.
    auth_token : str or None
        Database secret or ID token appended as ``?auth=``.
    mqtt_host : str
        MQTT broker host.
    mqtt_port : int
        MQTT broker port.
    mqtt_topic_prefix : str
        Devices live on retained topics ``<prefix>/<device>``.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    mqtt_tls : bool
        Enable TLS for the broker connection.
    mqtt_username : str or None
        Broker username.
    mqtt_password : str or None
        Broker password.
    stream_retry_delay : float
        Seconds to wait before reopening a dropped change stream.
    speech : SpeechSettings
        Speech recognition settings.
    """

    store: str = STORE_FIREBASE
    database_url: str | None = None
    database_root: str = DEFAULT_DATABASE_ROOT
    auth_token: str | None = None
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_topic_prefix: str = DEFAULT_MQTT_TOPIC_PREFIX
    mqtt_keepalive: int = 60
    mqtt_tls: bool = False
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    stream_retry_delay: float = 5.0
    speech: SpeechSettings = dataclasses.field(default_factory=SpeechSettings)

    def validate(self) -> PanelConfig:
        """Check the configuration is usable and return it unchanged."""
        if self.store not in STORE_KINDS:
            raise PanelConfigError(f"Unknown store {self.store!r}; expected one of {', '.join(STORE_KINDS)}")
        if self.store == STORE_FIREBASE and not self.database_url:
            raise PanelConfigError("database_url is required for the firebase store")
        if self.stream_retry_delay < 0:
            raise PanelConfigError("stream_retry_delay must not be negative")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> PanelConfig:
        """Create configuration from environment variables.

        Reads optional ``HOMEPANEL_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        PanelConfig
            Populated configuration.
        """
        env = os.environ

        speech_kwargs: dict[str, Any] = {}
        language = env.get("HOMEPANEL_SPEECH_LANGUAGE")
        if language is not None:
            speech_kwargs["language"] = language
        speech_timeout = env.get("HOMEPANEL_SPEECH_TIMEOUT")
        if speech_timeout is not None:
            speech_kwargs["timeout"] = float(speech_timeout)
        phrase_limit = env.get("HOMEPANEL_SPEECH_PHRASE_LIMIT")
        if phrase_limit is not None:
            speech_kwargs["phrase_time_limit"] = float(phrase_limit) if phrase_limit.strip() else None

        # Allow overriding speech fields via a nested dict
        speech_overrides = overrides.pop("speech", None)
        if isinstance(speech_overrides, dict):
            speech_kwargs.update(speech_overrides)
        elif isinstance(speech_overrides, SpeechSettings):
            speech_kwargs = dataclasses.asdict(speech_overrides)

        speech = SpeechSettings(**speech_kwargs) if speech_kwargs else SpeechSettings()

        _ENV_CONFIG_MAP = {
            "HOMEPANEL_STORE": "store",
            "HOMEPANEL_DATABASE_URL": "database_url",
            "HOMEPANEL_DATABASE_ROOT": "database_root",
            "HOMEPANEL_AUTH_TOKEN": "auth_token",
            "HOMEPANEL_MQTT_HOST": "mqtt_host",
            "HOMEPANEL_MQTT_TOPIC_PREFIX": "mqtt_topic_prefix",
            "HOMEPANEL_MQTT_USERNAME": "mqtt_username",
            "HOMEPANEL_MQTT_PASSWORD": "mqtt_password",
        }
        config_kwargs: dict[str, Any] = {"speech": speech}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        port_env = env.get("HOMEPANEL_MQTT_PORT")
        if port_env is not None and "mqtt_port" not in overrides:
            config_kwargs["mqtt_port"] = int(port_env)

        keepalive_env = env.get("HOMEPANEL_MQTT_KEEPALIVE")
        if keepalive_env is not None and "mqtt_keepalive" not in overrides:
            config_kwargs["mqtt_keepalive"] = int(keepalive_env)

        if "mqtt_tls" not in overrides:
            config_kwargs["mqtt_tls"] = _env_bool(env.get("HOMEPANEL_MQTT_TLS"), False)

        retry_env = env.get("HOMEPANEL_STREAM_RETRY_DELAY")
        if retry_env is not None and "stream_retry_delay" not in overrides:
            config_kwargs["stream_retry_delay"] = float(retry_env)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
