"""Command names understood by tsserver.

Commands fall in two groups: those the server answers with a Response,
and those it never answers (the client sends them fire-and-forget).
"""

from __future__ import annotations

from enum import Enum


class CommandType(str, Enum):
    """Supported tsserver commands."""

    # Fire-and-forget (no response is routed)
    OPEN = "open"
    CLOSE = "close"
    RELOAD_PROJECTS = "reloadProjects"
    GETERR = "geterr"
    GETERR_FOR_PROJECT = "geterrForProject"

    # File state
    RELOAD = "reload"

    # Navigation / info
    QUICKINFO = "quickinfo"
    DEFINITION = "definition"
    TYPE_DEFINITION = "typeDefinition"
    REFERENCES = "references"
    SIGNATURE_HELP = "signatureHelp"
    NAVTREE = "navtree"
    NAVTO = "navto"
    PROJECT_INFO = "projectInfo"

    # Completions (name depends on server version)
    COMPLETION_INFO = "completionInfo"
    COMPLETIONS = "completions"
    COMPLETION_ENTRY_DETAILS = "completionEntryDetails"

    # Refactoring
    RENAME = "rename"
    GET_CODE_FIXES = "getCodeFixes"
    GET_SUPPORTED_CODE_FIXES = "getSupportedCodeFixes"
    GET_COMBINED_CODE_FIX = "getCombinedCodeFix"
    GET_APPLICABLE_REFACTORS = "getApplicableRefactors"
    ORGANIZE_IMPORTS = "organizeImports"
    GET_EDITS_FOR_FILE_RENAME = "getEditsForFileRename"

    # Synchronous diagnostics
    SEMANTIC_DIAGNOSTICS_SYNC = "semanticDiagnosticsSync"
    SYNTACTIC_DIAGNOSTICS_SYNC = "syntacticDiagnosticsSync"
    SUGGESTION_DIAGNOSTICS_SYNC = "suggestionDiagnosticsSync"


NO_RESPONSE_COMMANDS = frozenset(
    command.value
    for command in (
        CommandType.OPEN,
        CommandType.CLOSE,
        CommandType.RELOAD_PROJECTS,
        CommandType.GETERR,
        CommandType.GETERR_FOR_PROJECT,
    )
)


class EventName(str, Enum):
    """Unsolicited event names emitted by tsserver."""

    TELEMETRY = "telemetry"
    PROJECTS_UPDATED_IN_BACKGROUND = "projectsUpdatedInBackground"
    PROJECT_LOADING_START = "projectLoadingStart"
    PROJECT_LOADING_FINISH = "projectLoadingFinish"
    SEMANTIC_DIAG = "semanticDiag"
    SYNTAX_DIAG = "syntaxDiag"
    SUGGESTION_DIAG = "suggestionDiag"
    REQUEST_COMPLETED = "requestCompleted"
