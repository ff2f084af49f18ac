"""CLI entry point for the contract test runner."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from pydantic import ValidationError

from contract_test_runner.backends.loading import load_backend_manifest
from contract_test_runner.engine import TestFilter
from contract_test_runner.errors import TestRunnerError
from contract_test_runner.report import format_output, log_results_summary
from contract_test_runner.runner import TestRunner

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


def parse_libs(libs: Sequence[str]) -> Mapping[str, Path]:
    """Parse ``name=path`` library specs; a bare path is named after its dir."""
    parsed: dict[str, Path] = {}
    for spec in libs:
        spec = spec.strip()
        if not spec:
            continue
        name, sep, path = spec.partition("=")
        if sep:
            parsed[name.strip()] = Path(path.strip())
        else:
            parsed[Path(spec).name] = Path(spec)
    return parsed


async def run(
    path: Path,
    backend_key: str,
    backend_config_json: str,
    test_filter: TestFilter,
    libs: Mapping[str, Path],
    starknet: bool = False,
    show_mocks: bool = False,
    max_workers: int | None = None,
) -> int:
    """Run the tests of a project and return exit code."""
    log = logging.getLogger("contract_test_runner")

    try:
        log.info("Loading backend: %s", backend_key)
        manifest = load_backend_manifest(backend_key)
        config = manifest.config_cls.model_validate(json.loads(backend_config_json))

        with manifest.backend_factory(config) as backend:
            runner = TestRunner(
                backend=backend,
                path=path,
                test_filter=test_filter,
                libs=libs,
                starknet=starknet,
                show_mocks=show_mocks,
                max_workers=max_workers,
            )
            report = await runner.run()
    except (json.JSONDecodeError, ValidationError) as exc:
        log.error("Invalid backend configuration: %s", exc)
        return EXIT_ERROR
    except TestRunnerError as exc:
        log.error("%s", exc, exc_info=exc.__cause__ is not None)
        return EXIT_ERROR

    log_results_summary(log, report.summary, report.filtered_out)
    print(json.dumps(format_output(report.summary, report.filtered_out), indent=2))

    return EXIT_OK if report.ok else EXIT_FAILED


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Compile a project and run its tests in parallel"
    )
    parser.add_argument("path", type=Path, help="The path to compile and run its tests")
    parser.add_argument(
        "-f",
        "--filter",
        default="",
        help="Run only tests whose name contains the filter string",
    )
    parser.add_argument(
        "--include-ignored",
        action="store_true",
        help="Run ignored tests as well",
    )
    parser.add_argument(
        "--ignored",
        action="store_true",
        help="Run only the ignored tests",
    )
    parser.add_argument(
        "--starknet",
        action="store_true",
        help="Compile contracts and their entry points with the tests",
    )
    parser.add_argument(
        "-l",
        "--libs",
        default="",
        help="Comma-separated additional libraries (name=path or path)",
    )
    parser.add_argument(
        "--backend",
        default="scripted",
        help="Backend key, as registered in the backend entry points",
    )
    parser.add_argument(
        "--backend-config",
        default="{}",
        help="JSON configuration for the backend",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of tests run in parallel (default: CPU count)",
    )
    parser.add_argument(
        "--show-mocks",
        action="store_true",
        help="Log every mocked contract address of every test",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            path=args.path,
            backend_key=args.backend,
            backend_config_json=args.backend_config,
            test_filter=TestFilter(
                name_filter=args.filter,
                include_ignored=args.include_ignored,
                ignored_only=args.ignored,
            ),
            libs=parse_libs(args.libs.split(",")),
            starknet=args.starknet,
            show_mocks=args.show_mocks,
            max_workers=args.workers,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
