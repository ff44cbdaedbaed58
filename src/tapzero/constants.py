from __future__ import annotations

TAP_VERSION = 13
TAP_VERSION_LINE = f"TAP version {TAP_VERSION}"

# Combined width above which expected/actual are rendered as block literals.
LONG_VALUE_WIDTH = 65

UNDEFINED_SENTINEL = "_tz_undefined_tz_"
UNDEFINED_TOKEN = "undefined"

DEFAULT_DESCRIPTIONS = {
    "equal": "should be equal",
    "notEqual": "should not be equal",
    "deepEqual": "should be equivalent",
    "notDeepEqual": "should not be equivalent",
    "ok": "should be truthy",
    "fail": "fail called",
    "throws": "should throw",
    "ifError": "should not error",
}

ENV_STRICT = "TAPZERO_STRICT"
ENV_RETHROW = "TAPZERO_RETHROW"
ENV_EXIT_ON_FAILURE = "TAPZERO_EXIT_ON_FAILURE"

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERNAL_ERROR = 2
