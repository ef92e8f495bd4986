"""
Test helpers shared across the suite.
"""

import base64
import os
from typing import Dict

# 2018-01-01 00:00:00 UTC
NOW = 1514764800
DAY = 86400

FILE_URL = "https://files.example.com/"
PASSWORD = "secret"


def basic_auth(username: str, password: str = PASSWORD) -> Dict[str, str]:
    """Build an Authorization header for HTTP Basic auth."""
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


def write_file(path, content: str = "content") -> str:
    """Create a file (and its parent directories) and return its path."""
    path = str(path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    return path


def read_file(path) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()
