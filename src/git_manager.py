"""
Git helper for cloning a new web app's SCM repository
"""

import os
import subprocess
from pathlib import Path
from typing import Union
from urllib.parse import urlsplit, urlunsplit

from logger import get_logger


def redact_url(url: str) -> str:
    """Strip any password from a URL before it is logged"""
    parts = urlsplit(url)
    if parts.password is None:
        return url
    netloc = f"{parts.username}:***@{parts.hostname}"
    if parts.port:
        netloc += f":{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


class GitManager:
    """Runs git against web app source-control endpoints"""

    def __init__(self):
        self.logger = get_logger()

    def clone_repository(self, repo_url: str, target: Union[str, Path], cwd: Union[str, Path]) -> bool:
        """
        Clone ``repo_url`` into ``target`` (relative to ``cwd``).

        The URL may carry a password, so git output is never logged and
        the credential helper gets to store it. Failures are reported
        through the return value only.
        """
        target_path = Path(cwd) / target
        if (target_path / '.git').exists():
            self.logger.info(f"Repository already cloned at {target_path}")
            return True

        target_path.parent.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Cloning {redact_url(repo_url)} into {target}")
        try:
            result = subprocess.run(
                ['git', 'clone', repo_url, str(target)],
                cwd=str(cwd),
                capture_output=True,
                text=True,
                env={**os.environ, 'GIT_TERMINAL_PROMPT': '0'}
            )
        except (OSError, subprocess.SubprocessError) as e:
            self.logger.warning(f"Could not run git clone: {e}")
            return False

        if result.returncode != 0:
            self.logger.warning(f"git clone exited with code {result.returncode}")
            return False

        self.logger.success(f"Cloned into {target}")
        return True
