"""Application-level constants for cmdlet-browser."""

# ============================================================================
# Application identity
# ============================================================================

APP_NAME = "cmdlet-browser"

# ============================================================================
# Default directories and paths
# ============================================================================

USER_DATA_DIR = f"~/.{APP_NAME}"
DEFAULT_LOGS_DIR = f"{USER_DATA_DIR}/logs"
DEFAULT_HISTORY_FILE = f"{USER_DATA_DIR}/history"

LOG_FILE_EXTENSION = ".log"
DATETIME_FORMAT_FILENAME = "%Y-%m-%d_%H-%M-%S"

# ============================================================================
# Host defaults
# ============================================================================

DEFAULT_HOST_EXECUTABLE = "pwsh"
DEFAULT_HOST_ARGUMENTS = ("-NoProfile", "-NonInteractive")
DEFAULT_QUERY_TIMEOUT = 60.0

# get_command_info, get_help_full and the get_syntax_text fallback each run
# their own host process.
HELP_QUERIES_PER_LOOKUP = 3

# Get-Help emits "Get-Help cannot find the Help files..." for commands
# without authored documentation (en-US wording).
DEFAULT_PLACEHOLDER_SYNOPSIS_PREFIXES = ("Get-Help ",)

# ============================================================================
# Help normalization
# ============================================================================

COMMON_PARAMETERS = frozenset(
    {
        "verbose",
        "debug",
        "erroraction",
        "warningaction",
        "informationaction",
        "errorvariable",
        "warningvariable",
        "informationvariable",
        "outvariable",
        "outbuffer",
        "pipelinevariable",
        "whatif",
        "confirm",
        "progressaction",
    }
)

UNPOSITIONED_SORT_KEY = 999
SYNTAX_DIVIDER = "-" * 40
POSITION_NAMED = "Named"
PIPELINE_BY_VALUE = "true (ByValue)"
PIPELINE_BY_PROPERTY_NAME = "true (ByPropertyName)"
PIPELINE_NONE = "false"
SWITCH_PARAMETER_LABEL = "SwitchParameter"
ALIAS_SEPARATOR = ", "

NO_SYNOPSIS_TEXT = (
    "No local synopsis available. Try: Update-Help -ErrorAction SilentlyContinue"
)
NO_SYNTAX_TEXT = "No syntax available."
NO_EXAMPLES_TEXT = "No examples available."
HELP_ERROR_PREFIX = "Error loading help: "

# ============================================================================
# Export and online help
# ============================================================================

CSV_HEADER = ("Name", "ModuleName", "CommandType", "Source")
CSV_LINE_TERMINATOR = "\r\n"
CSV_ENCODING = "utf-8-sig"
DEFAULT_EXPORT_FILENAME = "Commands.csv"

ONLINE_HELP_URL_TEMPLATE = "https://learn.microsoft.com/powershell/module/?term={term}"

# ============================================================================
# Module filter
# ============================================================================

ALL_MODULES_TOKENS = frozenset({"", "*", "all"})
ALL_MODULES_LABEL = "All Modules"
