from enum import Enum


class DistanceSource(str, Enum):
    GOOGLE = "google"
    ROUGH = "rough"
    CACHE = "cache"

    def __str__(self):
        return self.value


class FallbackReason(str, Enum):
    NO_KEY = "no_key"
    TIMEOUT = "timeout"
    MISSING_VALUES = "missing_values"
    MALFORMED = "malformed"
    EXCEPTION = "exception"

    def __str__(self):
        return self.value
