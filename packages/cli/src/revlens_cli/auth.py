"""GitHub token lookup for ``--github`` reviews.

Local reviews never need a token. Lookup order, first hit wins:
  1. GITHUB_TOKEN, then GH_TOKEN
  2. `gh auth token`, i.e. an existing GitHub CLI login
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")
_GH_TIMEOUT = 5


def _token_from_env() -> str | None:
    for name in _TOKEN_ENV_VARS:
        value = os.environ.get(name, "").strip()
        if value:
            logger.debug("Using GitHub token from %s.", name)
            return value
    return None


def _token_from_gh_cli() -> str | None:
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=_GH_TIMEOUT,
        )
    except FileNotFoundError:
        logger.debug("gh CLI is not installed.")
        return None
    except subprocess.TimeoutExpired:
        logger.debug("gh auth token timed out after %ds.", _GH_TIMEOUT)
        return None
    if result.returncode != 0:
        return None
    token = result.stdout.strip()
    if token:
        logger.debug("Using GitHub token from the gh CLI session.")
    return token or None


def resolve_github_token() -> str | None:
    """Return a GitHub token, or None when no source has one.

    Never raises; callers turn None into a usage error.
    """
    return _token_from_env() or _token_from_gh_cli()
