# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    UNAUTHORIZED = ErrorInfo("Unauthorized", status.HTTP_401_UNAUTHORIZED)
    INVALID_SIZE = ErrorInfo("Missing/invalid sizeBytes", status.HTTP_400_BAD_REQUEST)
    MISSING_IDS = ErrorInfo("Missing token/mediaId", status.HTTP_400_BAD_REQUEST)
    INVALID_WINDOW = ErrorInfo("Invalid minutes/hours", status.HTTP_400_BAD_REQUEST)
    INVALID_LIMIT = ErrorInfo("Invalid limit", status.HTTP_400_BAD_REQUEST)
    VIMEO_CREATE_FAILED = ErrorInfo(
        "Failed to create Vimeo upload", status.HTTP_502_BAD_GATEWAY
    )
    VIMEO_BAD_RESPONSE = ErrorInfo(
        "Vimeo response missing upload_link/video id", status.HTTP_502_BAD_GATEWAY
    )
    VIMEO_DELETE_FAILED = ErrorInfo("Vimeo delete failed", status.HTTP_502_BAD_GATEWAY)
    VIMEO_UNAVAILABLE = ErrorInfo("Vimeo request failed", status.HTTP_502_BAD_GATEWAY)
    STORE_UNAVAILABLE = ErrorInfo(
        "Upload store unavailable", status.HTTP_503_SERVICE_UNAVAILABLE
    )
