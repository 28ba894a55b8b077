"""Typed command wrappers.

Each method names one tsserver command and forwards its arguments to the
client's generic request methods. Argument and body shapes follow the
tsserver protocol and are passed through as plain dicts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .client import ProtocolClient
from .notifications import DiagnosticsBatchProps, DiagnosticsCompleted
from .protocol.commands import CommandType

Args = dict[str, Any]


@dataclass
class TsServerAPI:
    """tsserver commands over a ProtocolClient."""

    _client: ProtocolClient

    # -------------------------------------------------------------------------
    # Fire-and-forget
    # -------------------------------------------------------------------------

    async def open_file(self, args: Args) -> None:
        await self._client.send_no_response(CommandType.OPEN.value, args)

    async def close_file(self, args: Args) -> None:
        await self._client.send_no_response(CommandType.CLOSE.value, args)

    async def reload_projects(self) -> None:
        await self._client.send_no_response(CommandType.RELOAD_PROJECTS.value, None)

    async def geterr(self, files: list[str], delay: int = 0) -> None:
        """Request diagnostics for files; results arrive as DiagnosticsCompleted."""
        await self._client.send_no_response(
            CommandType.GETERR.value, {"files": files, "delay": delay}
        )

    async def geterr_for_project(self, args: Args) -> None:
        """Request diagnostics for a whole project; results arrive as DiagnosticsCompleted."""
        await self._client.send_no_response(CommandType.GETERR_FOR_PROJECT.value, args)

    async def collect_diagnostics(self, files: list[str], delay: int = 0) -> DiagnosticsBatchProps:
        """Issue geterr for files and wait for the aggregated batch."""
        batch = self._client.expect(DiagnosticsCompleted)
        try:
            await self.geterr(files, delay)
        except BaseException:
            batch.cancel()
            raise
        return await batch

    # -------------------------------------------------------------------------
    # Correlated
    # -------------------------------------------------------------------------

    async def update_file(self, args: Args) -> Any:
        return await self._client.request(CommandType.RELOAD.value, args)

    async def quick_info(self, args: Args) -> Any:
        return await self._client.request(CommandType.QUICKINFO.value, args)

    async def definition(self, args: Args) -> Any:
        return await self._client.request(CommandType.DEFINITION.value, args)

    async def type_definition(self, args: Args) -> Any:
        return await self._client.request(CommandType.TYPE_DEFINITION.value, args)

    async def references(self, args: Args) -> Any:
        return await self._client.request(CommandType.REFERENCES.value, args)

    async def signature_help(self, args: Args) -> Any:
        return await self._client.request(CommandType.SIGNATURE_HELP.value, args)

    async def completions(self, args: Args) -> Any:
        """Completions, using whichever command the server version supports."""
        return await self._client.request(self._client.completion_command, args)

    async def completion_details(self, args: Args) -> Any:
        return await self._client.request(CommandType.COMPLETION_ENTRY_DETAILS.value, args)

    async def project_info(self, args: Args) -> Any:
        return await self._client.request(CommandType.PROJECT_INFO.value, args)

    async def rename(self, args: Args) -> Any:
        return await self._client.request(CommandType.RENAME.value, args)

    async def document_symbols(self, args: Args) -> Any:
        return await self._client.request(CommandType.NAVTREE.value, args)

    async def workspace_symbols(self, args: Args) -> Any:
        return await self._client.request(CommandType.NAVTO.value, args)

    async def semantic_diagnostics_sync(self, args: Args) -> Any:
        return await self._client.request(CommandType.SEMANTIC_DIAGNOSTICS_SYNC.value, args)

    async def syntactic_diagnostics_sync(self, args: Args) -> Any:
        return await self._client.request(CommandType.SYNTACTIC_DIAGNOSTICS_SYNC.value, args)

    async def suggestion_diagnostics_sync(self, args: Args) -> Any:
        return await self._client.request(CommandType.SUGGESTION_DIAGNOSTICS_SYNC.value, args)

    async def code_fixes(self, args: Args) -> Any:
        return await self._client.request(CommandType.GET_CODE_FIXES.value, args)

    async def applicable_refactors(self, args: Args) -> Any:
        return await self._client.request(CommandType.GET_APPLICABLE_REFACTORS.value, args)

    async def supported_code_fixes(self) -> Any:
        return await self._client.request(CommandType.GET_SUPPORTED_CODE_FIXES.value, None)

    async def combined_code_fix(self, args: Args) -> Any:
        return await self._client.request(CommandType.GET_COMBINED_CODE_FIX.value, args)

    async def organize_imports(self, args: Args) -> Any:
        return await self._client.request(CommandType.ORGANIZE_IMPORTS.value, args)

    async def edits_for_file_rename(self, args: Args) -> Any:
        return await self._client.request(CommandType.GET_EDITS_FOR_FILE_RENAME.value, args)
