"""Access to the CloudFormation APIs the template evaluator reads from."""

import logging
from typing import Optional, Protocol, TypedDict

import boto3
from botocore.client import BaseClient

from hotswap import config
from hotswap.cloudformation.engine.template import CfnExport, StackResourceSummary
from hotswap.utils.asyncio import run_sync
from hotswap.utils.aws.arns import get_url_suffix

LOG = logging.getLogger(__name__)


class ListExportsOutput(TypedDict, total=False):
    Exports: list[CfnExport]
    NextToken: str


class CloudFormationSdk(Protocol):
    """The read-only cloud capabilities needed to evaluate templates against a deployed stack."""

    async def list_stack_resources(self, stack_name: str) -> list[StackResourceSummary]: ...

    async def list_exports(self, next_token: Optional[str] = None) -> ListExportsOutput: ...

    async def get_url_suffix(self, region: str) -> str: ...


class Boto3CloudFormationSdk:
    """
    ``CloudFormationSdk`` backed by a boto3 CloudFormation client. The blocking client calls are executed in the
    shared thread pool, see ``hotswap.utils.asyncio.run_sync``.
    """

    def __init__(
        self,
        session: Optional[boto3.Session] = None,
        region_name: Optional[str] = None,
        client: Optional[BaseClient] = None,
    ):
        self.session = session
        self.region_name = region_name or config.DEFAULT_REGION
        self._client = client

    @property
    def cloudformation(self) -> BaseClient:
        if self._client is None:
            session = self.session or boto3.Session()
            self._client = session.client("cloudformation", region_name=self.region_name)
        return self._client

    async def list_stack_resources(self, stack_name: str) -> list[StackResourceSummary]:
        return await run_sync(self._list_stack_resources, stack_name)

    def _list_stack_resources(self, stack_name: str) -> list[StackResourceSummary]:
        paginator = self.cloudformation.get_paginator("list_stack_resources")
        result = []
        for page in paginator.paginate(StackName=stack_name):
            result.extend(page.get("StackResourceSummaries", []))
        LOG.debug("Listed %s resources of stack %s", len(result), stack_name)
        return result

    async def list_exports(self, next_token: Optional[str] = None) -> ListExportsOutput:
        kwargs = {"NextToken": next_token} if next_token else {}
        return await run_sync(self.cloudformation.list_exports, **kwargs)

    async def get_url_suffix(self, region: str) -> str:
        return get_url_suffix(region)
