#!/usr/bin/env python
"""Write config.yaml for a local faro-lite setup.

The file has two sections: ``client`` (collector URL, app identity,
transport and queue settings read by FaroClient) and ``collector`` (bind
address of the development collector started by start.py).

Usage:
    python config.py           # Create config.yaml from config.sample.yaml
    python config.py --force   # Replace an existing config.yaml
    python config.py --check   # Only validate the current config.yaml
"""

import argparse
import shutil
import sys
from pathlib import Path

SAMPLE = "config.sample.yaml"
TARGET = "config.yaml"


def describe(path: Path) -> int:
    """Load ``path`` the way the client does and summarize it."""
    sys.path.insert(0, str(Path(__file__).parent.resolve() / "src"))
    import yaml

    from faro_lite.config import Config, ConfigError

    try:
        config = Config.from_yaml(str(path))
    except (ConfigError, OSError, yaml.YAMLError) as e:
        print(f"  invalid: {path.name}: {e}")
        return 1

    client, collector = config.client, config.collector
    print(f"  client:    {client.app_name} {client.app_version} ({client.environment})")
    print(f"             ships to {client.url} via {client.transport_type}")
    print(f"  collector: listens on http://{collector.host}:{collector.port}{collector.path}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Write config.yaml for faro-lite")
    parser.add_argument("--force", "-f", action="store_true", help="Replace an existing config.yaml")
    parser.add_argument("--check", action="store_true", help="Validate config.yaml without writing")
    args = parser.parse_args()

    root = Path(__file__).parent.resolve()
    sample, target = root / SAMPLE, root / TARGET

    if args.check:
        if not target.exists():
            print(f"  missing: {TARGET} (run python config.py)")
            return 1
        return describe(target)

    if not sample.exists():
        print(f"  missing: {SAMPLE}")
        return 1
    if target.exists() and not args.force:
        print(f"  keep: {TARGET} (use --force to replace it)")
    else:
        shutil.copy(sample, target)
        print(f"  wrote: {TARGET}")

    status = describe(target)
    if status == 0:
        print("Next: python start.py, then python demo.py")
    return status


if __name__ == "__main__":
    sys.exit(main())
