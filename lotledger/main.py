"""Main module entrypoint for local runtime execution.

`api` launches the FastAPI service; `import` applies one broker export file to
the lot ledger and exits non-zero when the import run fails.
"""

import argparse
import sys
from pathlib import Path

import uvicorn

from lotledger.bootstrap import bootstrap_create_application, bootstrap_create_import_orchestrator, bootstrap_load_settings
from lotledger.db import ImportRunAlreadyActiveError
from lotledger.imports import IMPORT_READERS


def main(argv: list[str] | None = None) -> None:
    """Run selected runtime command with validated startup configuration.

    Args:
        argv: Optional argument list; defaults to process arguments.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with status 1 when an import fails or cannot start.
    """

    argument_parser = argparse.ArgumentParser(description="Lot ledger runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "import"),
        help="Runtime command: `api` starts server, `import` applies one broker export file",
        type=str,
    )
    argument_parser.add_argument("--file", dest="file_path", type=Path, help="Broker export file for `import`")
    argument_parser.add_argument(
        "--source",
        dest="source",
        choices=tuple(sorted(IMPORT_READERS)),
        help="Broker export format for `import`",
    )
    argument_parser.add_argument(
        "--account",
        dest="account_id",
        type=str,
        help="Account identifier override for `import`",
    )
    parsed_arguments = argument_parser.parse_args(argv)

    settings = bootstrap_load_settings()

    if parsed_arguments.command == "import":
        if parsed_arguments.file_path is None or parsed_arguments.source is None:
            argument_parser.error("`import` requires --file and --source")
        import_orchestrator = bootstrap_create_import_orchestrator(
            file_path=parsed_arguments.file_path,
            source=parsed_arguments.source,
            account_id=parsed_arguments.account_id,
            settings=settings,
        )
        try:
            execution_result = import_orchestrator.job_execute(job_name="ledger_import")
        except ImportRunAlreadyActiveError:
            print("IMPORT_RUN_ALREADY_ACTIVE", file=sys.stderr)
            raise SystemExit(1) from None
        print(f"import run {execution_result.run_id}: {execution_result.status}")
        if execution_result.status != "success":
            raise SystemExit(1)
        return

    application = bootstrap_create_application(settings=settings)
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


if __name__ == "__main__":
    main()
