"""
Pure helpers deriving environment names and URLs
"""

import random
from typing import Optional

WEBAPP_DOMAIN = "azurewebsites.net"
SCM_PORT = 443
ENV_SUFFIX = "qa"

DEFAULT_REDIS_DATABASE = 1
REDIS_DATABASE_MIN = 2
REDIS_DATABASE_MAX = 9
REDIS_DATABASE_PLACEHOLDER = "database=9"


def environment_name(prefix: str, jira_issue_key: Optional[str] = None) -> str:
    """Build the lower-cased environment name for a prefix and issue key"""
    if not jira_issue_key:
        return f"{prefix}-{ENV_SUFFIX}".lower()
    return f"{prefix}-{jira_issue_key}-{ENV_SUFFIX}".lower()


def webapp_host(name: str) -> str:
    return f"{name}.{WEBAPP_DOMAIN}"


def webapp_url(name: str) -> str:
    return f"https://{webapp_host(name)}"


def scm_url(name: str, user: str, password: Optional[str] = None) -> str:
    """Source-control endpoint of the web app, with credentials embedded"""
    userinfo = f"{user}:{password}" if password else user
    return f"https://{userinfo}@{name}.scm.{WEBAPP_DOMAIN}:{SCM_PORT}/{name}"


def deployment_url(name: str, user: str) -> str:
    """Git push URL handed to later pipeline steps (no password)"""
    return scm_url(name, user) + ".git"


def redis_database_index(name: str, default_name: str, rng: Optional[random.Random] = None) -> int:
    """
    Choose the Redis database for an environment.

    The default environment always gets database 1; feature environments
    share databases 2 to 9, picked at random.
    """
    if name == default_name:
        return DEFAULT_REDIS_DATABASE
    rng = rng or random
    return rng.randint(REDIS_DATABASE_MIN, REDIS_DATABASE_MAX)


def redis_connection_string(template: str, database_index: int) -> str:
    return template.replace(REDIS_DATABASE_PLACEHOLDER, f"database={database_index}")
