import argparse
import json
import sys

from app.bootstrap import Components, build_components
from app.config.settings import Settings
from app.database.connection import close_pool, init_pool
from app.logging.logger import Log


def _customer_id(value: str) -> str:
    if not value.isdigit():
        raise argparse.ArgumentTypeError(f"customer_id '{value}' is not numeric")
    return value


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="docsync")
    commands = parser.add_subparsers(dest="command", required=True)
    audit = commands.add_parser("audit", help="sync, detect and analyse a policy's application")
    audit.add_argument("policy_number")
    sync = commands.add_parser("sync", help="sync one customer's documents")
    sync.add_argument("customer_id", type=_customer_id)
    detect = commands.add_parser("detect", help="scan a customer's stored PDFs for an application")
    detect.add_argument("customer_id", type=_customer_id)
    return parser.parse_args(argv)


def run_command(components: Components, args: argparse.Namespace) -> int:
    """Run one parsed command, print its JSON result and return the exit code."""
    if args.command == "audit":
        result = components.audit.execute(args.policy_number)
        payload, ok = result.to_dict(), result.success
    elif args.command == "sync":
        payload, ok = components.orchestrator.sync(args.customer_id).to_dict(), True
    else:
        detection = components.detector.find_in_prefix(args.customer_id)
        payload, ok = detection.to_dict(), detection.found
    print(json.dumps(payload, default=str, indent=2))
    return 0 if ok else 1


def main(argv: list[str] | None = None) -> int:
    """Entry point: initialize pool -> build dependencies -> run one command."""
    args = _parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        components = build_components(settings)
        try:
            return run_command(components, args)
        finally:
            components.close()
    finally:
        close_pool()


if __name__ == "__main__":
    sys.exit(main())
