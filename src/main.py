"""
Command line entry point used by the build plan tasks to manage
per-branch Azure Web App environments
"""

import argparse
import os
import sys
import traceback
from pathlib import Path

from azure_config import DEFAULT_CONFIG_PATH, DEFAULT_TEMPLATES_DIR, PipelineContext, load_config
from environment_manager import EnvironmentManager
from errors import ProvisionerError
from logger import get_logger, set_log_level
from schema_manager import ConfiguredSchemaManager


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Manage per-branch Azure Web App QA environments')
    parser.add_argument('--config', default=os.getenv('CONFIG_PATH', DEFAULT_CONFIG_PATH),
                        help='Path to the YAML config file')
    parser.add_argument('--config-code', default=None,
                        help='Config code to use (default: AZURE_CONFIG_CODE or bamboo_azure_config_code)')
    parser.add_argument('--branch', default=None, help='Branch name to take the Jira issue key from')
    parser.add_argument('--cwd', default=None, help='Project directory (default: current directory)')
    parser.add_argument('--templates-dir', default=DEFAULT_TEMPLATES_DIR,
                        help='Template directory relative to the project directory')

    subparsers = parser.add_subparsers(dest='command', required=True)
    subparsers.add_parser('provision', help='Create or update the environment and write the variables file')
    subparsers.add_parser('create', help='Create the environment')
    subparsers.add_parser('update', help='Update the existing environment')
    subparsers.add_parser('delete', help='Delete the environment and its database schema')
    subparsers.add_parser('exists', help='Exit 0 if the environment exists, 2 otherwise')
    subparsers.add_parser('name', help='Print the environment name')
    subparsers.add_parser('urls', help='Print the deployment and web app URLs')
    subparsers.add_parser('variables', help='Write Temp/azureWebappVariables.txt')
    return parser


def build_manager(args) -> EnvironmentManager:
    config = load_config(args.config, args.config_code)
    if config.log_level:
        set_log_level(config.log_level)

    context = PipelineContext(
        cwd=Path(args.cwd).resolve() if args.cwd else Path.cwd(),
        templates_dir=args.templates_dir,
        branch_name=args.branch,
    )
    schema_manager = ConfiguredSchemaManager(config.database, config.azure)
    return EnvironmentManager(config.azure, context, schema_manager)


def run(args) -> int:
    manager = build_manager(args)
    logger = get_logger()
    command = args.command

    if command == 'provision':
        manager.provision()
    elif command == 'delete':
        manager.teardown()
    elif command == 'name':
        print(manager.get_environment_name())
    elif command == 'urls':
        print(f"deploymentUrl={manager.get_deployment_url()}")
        print(f"webappUrl={manager.get_webapp_url()}")
    elif command == 'variables':
        manager.create_variables_file()
    else:
        credential, subscription_id = manager.connect()
        environment_name = manager.get_environment_name()
        if command == 'exists':
            return 0 if manager.environment_exists(credential, subscription_id, environment_name) else 2
        if command == 'create':
            manager.create_environment(credential, subscription_id, environment_name)
        elif command == 'update':
            manager.update_environment(credential, subscription_id, environment_name)

    logger.info("Done.")
    return 0


def cli(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except ProvisionerError as e:
        get_logger().error(str(e))
        return 1
    except KeyboardInterrupt:
        logger = get_logger()
        logger.info("")
        logger.info("Cancelled by user")
        return 1
    except Exception as e:
        get_logger().error(f"Error: {str(e)}")
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(cli())
