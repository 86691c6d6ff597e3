"""
Extracts the Jira issue key from the branch being built
"""

import os
import re
import subprocess
from typing import Optional

from azure_config import PipelineContext
from logger import get_logger

BRANCH_ENV_VAR = "bamboo_planRepository_branchName"
ISSUE_KEY_PATTERN = re.compile(r'([A-Z][A-Z0-9]+-\d+)', re.IGNORECASE)


def _current_git_branch(cwd) -> Optional[str]:
    try:
        result = subprocess.run(
            ['git', 'rev-parse', '--abbrev-ref', 'HEAD'],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=10
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, NotADirectoryError):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def get_branch_name(context: PipelineContext) -> Optional[str]:
    """Branch from the context, then the build server, then git itself"""
    return context.branch_name or os.getenv(BRANCH_ENV_VAR) or _current_git_branch(context.cwd)


def extract_issue_key(branch_name: Optional[str]) -> str:
    if not branch_name:
        return ""
    match = ISSUE_KEY_PATTERN.search(branch_name)
    return match.group(1).upper() if match else ""


def get_jira_issue_key(context: PipelineContext) -> str:
    """Jira issue key of the current branch, or an empty string"""
    branch_name = get_branch_name(context)
    issue_key = extract_issue_key(branch_name)
    get_logger().debug(f"Branch '{branch_name}' -> Jira issue key '{issue_key}'")
    return issue_key
