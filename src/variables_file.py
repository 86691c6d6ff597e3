"""
Writes the key=value variables file injected into later build plan steps
"""

from pathlib import Path
from typing import Dict, Union

from errors import FileWriteError

VARIABLES_DIR = "Temp"
VARIABLES_FILENAME = "azureWebappVariables.txt"
WEBAPP_PORT = 443


def build_variables(
    deployment_url: str,
    webapp_url: str,
    jira_issue_key: str,
    primary_connection_strings: tuple,
    backup_connection_strings: tuple,
) -> Dict[str, str]:
    """Variables in the order the build plan expects them"""
    return {
        'deploymentUrl': deployment_url,
        'webappUrl': webapp_url,
        'webappPort': str(WEBAPP_PORT),
        'jiraIssueKey': jira_issue_key,
        'webappDbPrimaryConnString0': primary_connection_strings[0],
        'webappDbPrimaryConnString1': primary_connection_strings[1],
        'webappDbBackupConnString0': backup_connection_strings[0],
        'webappDbBackupConnString1': backup_connection_strings[1],
    }


def render_variables(variables: Dict[str, str]) -> str:
    return "".join(f"{key}={value}\n" for key, value in variables.items())


def write_variables_file(variables: Dict[str, str], cwd: Union[str, Path]) -> Path:
    """Create Temp/ if needed and overwrite the variables file"""
    output_path = Path(cwd) / VARIABLES_DIR / VARIABLES_FILENAME
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(render_variables(variables), encoding='utf-8')
    except OSError as e:
        raise FileWriteError(f"Could not write {output_path}: {e}") from e
    return output_path
