"""
Main entry point for the segrecon command-line interface.

Reconstruct neurons from stacks of segmentation hypotheses and prepare the
files used to train segment cost functions.
"""

import sys
import logging
import pkgutil
import importlib
import timeit
from argparse import ArgumentParser
from typing import List, Optional

import segrecon.cli as cli_package

logger = logging.getLogger(__name__)


def main(commandline_arguments: Optional[List[str]] = None) -> int:
    """
    Main entry point for the segrecon CLI.

    Args:
        commandline_arguments: Command line arguments. If None, sys.argv[1:] is used.

    Returns:
        Exit code.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s - %(levelname)s: %(message)s"
    )

    parser = ArgumentParser(description=__doc__, prog="segrecon")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # Each subcommand is a module of the cli subpackage with add_arguments() and main()
    for _, module_name, _ in pkgutil.iter_modules(cli_package.__path__):
        if module_name.startswith('_') or module_name == "main":
            continue

        module = importlib.import_module("." + module_name, cli_package.__name__)
        help_text = module.__doc__.strip().split("\n", maxsplit=1)[0]
        subparser = subparsers.add_parser(
            module_name,
            help=help_text,
            description=module.__doc__
        )
        module.add_arguments(subparser)
        subparser.set_defaults(module=module)

    args = parser.parse_args(commandline_arguments)

    if not hasattr(args, "module"):
        parser.print_help()
        return 0

    if args.debug:
        logging.getLogger("segrecon").setLevel(logging.DEBUG)

    module = args.module
    del args.module
    del args.debug

    # Print settings for module
    module_name = module.__name__.split('.')[-1]
    sys.stderr.write(f"SETTINGS FOR: {module_name} \n")
    for object_variable, value in vars(args).items():
        sys.stderr.write(f" {object_variable}: {value}\n")

    tic = timeit.default_timer()
    logger.info(f"Starting {module_name}")

    exit_code = 0
    try:
        result = module.main(args)
        if isinstance(result, int):
            exit_code = result
    except Exception as e:
        logger.error(f"Error executing {module_name}: {e}")
        exit_code = 1

    toc = timeit.default_timer()
    logger.info(f"Elapsed time ({module_name}): {round(toc - tic, 4)}s")

    if exit_code == 0:
        logger.info(f"Command {module_name} completed successfully")
    else:
        logger.error(f"Command {module_name} failed with exit code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
