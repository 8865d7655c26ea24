from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from voicewake.config.settings import load_settings
from voicewake.forward.dispatcher import ConnectivityCheck, ForwardStatus
from voicewake.forward.ssh import SSHRunner
from voicewake.utils.logging import configure_logging


def _print_status(status: ForwardStatus, message: str) -> None:
    if status is ForwardStatus.CHECKING:
        print("Checking…")
    elif status is ForwardStatus.OK:
        print("✅ SSH forward target reachable")
    elif status is ForwardStatus.FAILED:
        print(f"⚠️  {message}")


def main() -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Test the voice wake SSH forward target.")
    parser.add_argument("--config", type=Path)
    parser.add_argument("--target", help="override forward.target")
    parser.add_argument("--identity", help="override forward.identity_path")
    args = parser.parse_args()

    settings = load_settings(args.config)
    configure_logging()
    config = settings.forward.snapshot()
    overrides = {}
    if args.target:
        overrides["target"] = args.target
    if args.identity:
        overrides["identity_path"] = args.identity
    if overrides:
        config = config.model_copy(update=overrides)

    print("Forward config:", f"target={config.target or '(unset)'}", f"identity={config.identity_path or '(default)'}")
    check = ConnectivityCheck(
        runner=SSHRunner(connect_timeout_s=settings.forward.connect_timeout_s),
        on_status=_print_status,
    )
    status = check.run(config)
    return 0 if status is ForwardStatus.OK else 1


if __name__ == "__main__":
    try:
        rc = main()
    except KeyboardInterrupt:
        rc = 130
    sys.exit(rc)
