"""Centralized user-facing text for pltsync."""

from __future__ import annotations

class Styles:
    ERROR = "red"
    WARNING = "yellow"
    SUCCESS = "green"
    INFO = "dim"
    TITLE = "bold cyan"
    TABLE_HEADER = "bold magenta"


class Messages:
    APP_HELP = "pltsync – keep a Dialyzer PLT in sync with your project and check it."
    HELP_VERBOSE = "Log engine commands and synchronization decisions to stderr."
    HELP_MODULE = "Only report diagnostics for this module (repeatable). Defaults to all."
    HELP_PLT = "PLT file to create or update in place."
    HELP_BASE_PLT = "Existing PLT merged into a freshly built PLT (repeatable)."
    HELP_EBIN = "Directory whose .beam files make up the loaded modules (repeatable)."
    HELP_LOADED = "JSON snapshot {module: origin} dumped from a running node."
    HELP_OTP_LIB_DIR = "Erlang/OTP library root; detected with `erl` when omitted."
    HELP_FORMAT = "Output format: rich table or porcelain `file:line: severity: message` lines."
    HELP_SHOW_CONFIG = "Show current configuration."
    HELP_SET_DIALYZER = "Set the dialyzer executable."
    HELP_SET_OTP_LIB_DIR = "Set the Erlang/OTP library root (empty string to auto-detect)."
    HELP_SET_PLT = "Set the default PLT path."
    HELP_ADD_BASE_PLT = "Add a base PLT used when building from scratch."
    HELP_CLEAR_BASE_PLTS = "Remove all configured base PLTs."
    HELP_ADD_EBIN = "Add a default ebin directory."
    HELP_CLEAR_EBIN = "Remove all configured ebin directories."
    HELP_STRICT_PREFIX = (
        "Compare the OTP library root per path component instead of as a plain text prefix."
    )
    HELP_SET_TIMEOUT = "Seconds to wait for each dialyzer call (0 = no limit)."

    ERROR_ORIGIN_INVALID = "Module {identifier} has an unusable origin: {origin!r}."
    ERROR_ENGINE_FAILED = "Dialyzer {operation} failed: {reason}"
    ERROR_ENGINE_MISSING = "`{executable}` was not found on PATH."
    ERROR_ENGINE_TIMEOUT = "timed out after {timeout} seconds"
    ERROR_ENGINE_EXIT = "exited with status {code} ({detail})"
    ERROR_PLT_UNREADABLE = "Cannot read PLT {plt}: {reason}"
    ERROR_PLT_INFO_HEADER = "unexpected --plt_info output"
    ERROR_PLT_MISSING = "No PLT found at {plt}. Run `pltsync sync` first."
    ERROR_STAGE_FAILED = "PLT {stage} failed: {reason}"
    ERROR_SNAPSHOT_INVALID = "Module snapshot must be a JSON object of module names to origins."
    ERROR_SNAPSHOT_LOAD = "Unable to load module snapshot {path}: {reason}"
    ERROR_NO_MODULE_SOURCE = (
        "No loaded modules to analyze. Pass --ebin or --loaded, or configure "
        "`pltsync config --add-ebin <dir>`."
    )
    ERROR_CONFIG_JSON_INVALID = "Config JSON must be an object."
    ERROR_CONFIG_VALUE_INVALID = "Invalid config value for {field}."

    INFO_RUN_STARTED = "Synchronizing PLT and running dialyzer..."
    INFO_NO_DIAGNOSTICS = "Dialyzer reported no warnings."
    INFO_DIAGNOSTIC_COUNT = "{count} warning(s)."
    INFO_PLT_BUILT = "Built PLT {plt} from {count} file(s)."
    INFO_PLT_UPDATED = "Updated PLT {plt}: {added} added, {removed} removed."
    INFO_PLT_UP_TO_DATE = "PLT {plt} already matches the loaded modules; nothing to do."
    INFO_PLT_HEADER = "Files recorded in {plt}:"
    INFO_PLT_EMPTY = "The PLT records no files."
    INFO_PLT_COUNT = "{count} file(s)."
    INFO_CONFIG_SAVED = "Configuration saved."
    INFO_CONFIG_SUMMARY = (
        "Dialyzer: {dialyzer}\n"
        "Erl: {erl}\n"
        "OTP lib dir: {otp_lib_dir}\n"
        "PLT: {plt}\n"
        "Base PLTs: {base_plts}\n"
        "Ebin dirs: {ebin_dirs}\n"
        "Strict prefix: {strict}\n"
        "Timeout: {timeout}"
    )

    TABLE_TITLE = "Dialyzer diagnostics"
    TABLE_HEADER_SEVERITY = "Severity"
    TABLE_HEADER_LOCATION = "Location"
    TABLE_HEADER_MESSAGE = "Message"
