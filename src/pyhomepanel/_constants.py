"""Internal constants shared across the library."""

USER_AGENT = "pyhomepanel/1"

#: Display-only value for a device whose state has not been loaded yet.
UNKNOWN_STATE = "Unknown"

#: Shown before the first voice command.
RECOGNIZED_TEXT_PROMPT = "Press the button and speak..."

#: Shown when the speech service answered but produced no usable transcript.
NO_TRANSCRIPT_TEXT = "Could not recognize speech"

DEFAULT_DATABASE_ROOT = ""
DEFAULT_MQTT_TOPIC_PREFIX = "home"
DEFAULT_SPEECH_PROMPT = "Speak to text"

# ------------------------------------------------------------------
# Firebase REST streaming
# ------------------------------------------------------------------

SSE_EVENT_PUT = "put"
SSE_EVENT_PATCH = "patch"
SSE_EVENT_KEEP_ALIVE = "keep-alive"
SSE_EVENT_CANCEL = "cancel"
SSE_EVENT_AUTH_REVOKED = "auth_revoked"
