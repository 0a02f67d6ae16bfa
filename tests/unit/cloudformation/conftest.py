import asyncio
from collections import Counter
from typing import Optional

import pytest

from hotswap.cloudformation.engine.evaluator import EvaluateCloudFormationTemplate

TEST_ACCOUNT_ID = "111111111111"
TEST_REGION = "us-east-1"
TEST_PARTITION = "aws"
TEST_STACK_NAME = "test-stack"


class FakeCloudFormationSdk:
    """In-memory CloudFormation SDK which counts the calls made to it."""

    def __init__(
        self,
        stack_resources: Optional[dict[str, list[dict]]] = None,
        export_pages: Optional[list[list[dict]]] = None,
        url_suffix: str = "amazonaws.com",
    ):
        self.stack_resources = stack_resources or {}
        self.export_pages = export_pages or [[]]
        self.url_suffix = url_suffix
        self.calls = Counter()
        self.listed_stacks = []

    def add_stack_resource(
        self, logical_id: str, physical_id: str, resource_type: str, stack_name: str = TEST_STACK_NAME
    ):
        self.stack_resources.setdefault(stack_name, []).append(
            {
                "LogicalResourceId": logical_id,
                "PhysicalResourceId": physical_id,
                "ResourceType": resource_type,
            }
        )

    async def list_stack_resources(self, stack_name: str) -> list[dict]:
        self.calls["list_stack_resources"] += 1
        self.listed_stacks.append(stack_name)
        # give concurrent callers a chance to run before the result is available
        await asyncio.sleep(0)
        return list(self.stack_resources.get(stack_name, []))

    async def list_exports(self, next_token: Optional[str] = None) -> dict:
        self.calls["list_exports"] += 1
        await asyncio.sleep(0)
        index = int(next_token) if next_token else 0
        result = {"Exports": self.export_pages[index]}
        if index + 1 < len(self.export_pages):
            result["NextToken"] = str(index + 1)
        return result

    async def get_url_suffix(self, region: str) -> str:
        self.calls["get_url_suffix"] += 1
        await asyncio.sleep(0)
        return self.url_suffix


@pytest.fixture
def cfn_sdk():
    return FakeCloudFormationSdk()


@pytest.fixture
def create_evaluator(cfn_sdk):
    def _create(template: dict = None, **kwargs) -> EvaluateCloudFormationTemplate:
        kwargs.setdefault("stack_name", TEST_STACK_NAME)
        kwargs.setdefault("account", TEST_ACCOUNT_ID)
        kwargs.setdefault("region", TEST_REGION)
        kwargs.setdefault("partition", TEST_PARTITION)
        kwargs.setdefault("sdk", cfn_sdk)
        return EvaluateCloudFormationTemplate(template=template or {}, **kwargs)

    return _create


@pytest.fixture
def evaluate(create_evaluator):
    """Evaluate an expression against a fresh evaluator for the given template."""

    def _evaluate(expression, template: dict = None, **kwargs):
        evaluator = create_evaluator(template, **kwargs)
        return asyncio.run(evaluator.evaluate_cfn_expression(expression))

    return _evaluate
