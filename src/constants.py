"""
Global constants for DBC Tools.
Contains path configuration and environment detection.
"""

import os

# **************************************************************** #
#                       Build Info                                     #
# **************************************************************** #
APP_VERSION = "0.4.0"

# **************************************************************** #
#                       Environment Detection                        #
# **************************************************************** #
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))

# **************************************************************** #
#                       Path Configuration                           #
# **************************************************************** #
if DEV_MODE:
    WORK_DIR = os.path.join(SCRIPT_DIR, "..", "workdir")
    CONFIG_FILE = os.path.join(SCRIPT_DIR, "..", "workdir", "config.json")
else:
    WORK_DIR = os.getenv("DBC_TOOLS_HOME", os.path.join(os.path.expanduser("~"), ".dbc_tools"))
    CONFIG_FILE = os.path.join(WORK_DIR, "config.json")

LOG_FILE = os.path.join(WORK_DIR, "error.log")

# Fetched schema descriptions
SCHEMA_CACHE_DIR = os.path.join(WORK_DIR, "schema_cache")

# **************************************************************** #
#                       Generator Defaults                           #
# **************************************************************** #
DEFAULT_PACKAGE_NAME = "tables"
SCHEMA_FILE_SUFFIX = ".xml"
TABLE_FILE_SUFFIX = ".dbc"

# Seconds before a schema download is abandoned
HTTP_TIMEOUT = 30
