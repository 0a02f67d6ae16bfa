import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from hotswap.cloudformation.engine.template import CfnExport, StackResourceSummary
from hotswap.utils.sync import SingleFlight

if TYPE_CHECKING:
    from hotswap.cloudformation.client import CloudFormationSdk

LOG = logging.getLogger(__name__)


class LazyListStackResources:
    """
    The deployed resources of a stack, fetched on first access. Concurrent first callers share the same request, so
    the stack resources are listed at most once per instance.
    """

    def __init__(self, sdk: "CloudFormationSdk", stack_name: str):
        self.sdk = sdk
        self.stack_name = stack_name
        self._stack_resources = SingleFlight(self._fetch_stack_resources)

    async def list_stack_resources(self) -> list[StackResourceSummary]:
        return await self._stack_resources.get()

    async def _fetch_stack_resources(self) -> list[StackResourceSummary]:
        LOG.debug("Listing resources of stack %s", self.stack_name)
        return await self.sdk.list_stack_resources(self.stack_name)


class LazyLookupExport:
    """
    Lookup of CloudFormation exports by name. Export pages are fetched in order and only as far as needed to find
    the requested name. Every export on a fetched page is cached, and no page is fetched twice.
    """

    def __init__(self, sdk: "CloudFormationSdk"):
        self.sdk = sdk
        self.cached_exports: dict[str, CfnExport] = {}
        self._next_token: Optional[str] = None
        self._exhausted = False
        self._lock = asyncio.Lock()

    async def lookup_export(self, name: str) -> Optional[CfnExport]:
        """
        :param name: the name of the export
        :return: the export, or None if no export with the given name exists
        """
        if name in self.cached_exports:
            return self.cached_exports[name]

        async with self._lock:
            # pages may have been fetched by another lookup while waiting for the lock
            while name not in self.cached_exports and not self._exhausted:
                await self._fetch_next_page()

        return self.cached_exports.get(name)

    async def _fetch_next_page(self):
        LOG.debug("Listing CloudFormation exports (next token: %s)", self._next_token)
        response = await self.sdk.list_exports(self._next_token)
        for cfn_export in response.get("Exports") or []:
            if not cfn_export.get("Name"):
                # ignore any result that omits a name
                continue
            self.cached_exports[cfn_export["Name"]] = cfn_export
        self._next_token = response.get("NextToken")
        if not self._next_token:
            self._exhausted = True
