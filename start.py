#!/usr/bin/env python
"""Start the development collector."""

import os
import sys
from pathlib import Path

# Change to script directory so relative paths work correctly
script_dir = Path(__file__).parent.resolve()
os.chdir(script_dir)

# Add src to path
src_path = script_dir / "src"
sys.path.insert(0, str(src_path))

if __name__ == "__main__":
    from faro_lite.config import Config
    from faro_lite.collector.app import run

    config = Config.from_yaml("config.yaml") if Path("config.yaml").exists() else Config()
    run(config.collector, log_level=config.client.log_level)
