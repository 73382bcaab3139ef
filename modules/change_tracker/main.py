"""Change Tracker Module Entry Point

This module serves as the command-line interface for the change tracker: it
diffs two JSON snapshot files of an event request with the configured field
registry and prints the resulting ChangeSet.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from eventops.config import ConfigLoader
from eventops.exceptions import EventOpsConfigurationError, EventOpsValidationError
from eventops.utils import setup_logging, get_logger
from .audit import LoggingAuditSink, StaticActorNameResolver
from .tracker import ChangeTrackingEngine

logger = get_logger(__name__)


def _load_snapshot(path: str) -> Dict[str, Any]:
    with open(Path(path), 'r') as f:
        snapshot = json.load(f)
    if not isinstance(snapshot, dict):
        raise ValueError(f"Snapshot file {path} must contain a JSON object")
    return snapshot


def main(args: Optional[list] = None) -> int:
    """Main entry point for the change tracker module.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Event Request Change Tracker - Diff two event request snapshots"
    )
    parser.add_argument("--baseline", required=True, help="JSON file with the record as last saved")
    parser.add_argument("--live", required=True, help="JSON file with the record as edited")
    parser.add_argument(
        "--environment",
        choices=["development", "production"],
        default="development",
        help="Environment configuration to use (default: development)"
    )
    parser.add_argument("--config-dir", default=None, help="Configuration directory (default: config/)")
    parser.add_argument("--record-id", default=None, help="Event request id used in audit entries")
    parser.add_argument("--actor-id", default=None, help="Acting user id used in audit entries")
    parser.add_argument(
        "--no-audit",
        action="store_true",
        help="Skip audit logging even when enabled in configuration"
    )

    parsed_args = parser.parse_args(args)

    try:
        config_loader = ConfigLoader(parsed_args.config_dir)
        env_config = config_loader.load_environment_config(parsed_args.environment)
        logging_config = env_config.get("logging", {})
        setup_logging(
            environment=parsed_args.environment,
            log_level=logging_config.get("level", "INFO"),
            log_dir=logging_config.get("log_dir")
        )
        config_loader.validate_environment_variables(parsed_args.environment)

        baseline = _load_snapshot(parsed_args.baseline)
        live = _load_snapshot(parsed_args.live)

        engine = ChangeTrackingEngine.from_config(
            baseline,
            config_loader,
            parsed_args.environment,
            sink=LoggingAuditSink(),
            actor_resolver=StaticActorNameResolver(),
            record_id=parsed_args.record_id,
            actor_id=parsed_args.actor_id
        )
        if parsed_args.no_audit:
            engine.audit_mapper = None

        change_set = engine.flush_now(live)

    except (EventOpsConfigurationError, EventOpsValidationError) as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"Could not read snapshots: {e}")
        return 1

    print(change_set.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
