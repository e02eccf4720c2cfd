# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "vimeo"

PENDING: Final[str] = f"{ROOT}:pending"  # one JSON record per pending token
CONFIRMED: Final[str] = f"{ROOT}:confirmed"  # one marker per confirmed video id
PENDING_INDEX: Final[str] = f"{PENDING}:index"  # zset token -> created_at (epoch ms)
