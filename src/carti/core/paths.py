"""Well-known file and directory locations.

Project-relative locations hang off the directory carti is invoked from;
global locations hang off the carti home ($CARTI_HOME, else ~/.carti).
"""

import os
from pathlib import Path

# Project layout
BUNDLE_STORE_DIR = "carti_bundles"
LOCAL_LISTING_PATH = Path(".carti") / "local-bundles.json"
PUBLISH_LISTING_FILE = "bundles.json"
MACHINE_PACKAGE_FILE = "carti-machine-package.json"
STORED_MACHINE_DIR = "stored_machine"
BUILD_DIR_PREFIX = "carti_build_package"

# Global layout
CONFIG_FILE = "config.toml"
REPOS_FILE = "repos.json"
LISTINGS_DIR = "listings"


def carti_home() -> Path:
    override = os.environ.get("CARTI_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".carti"
