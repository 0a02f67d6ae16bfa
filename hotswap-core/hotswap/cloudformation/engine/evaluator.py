import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional, Union

from hotswap.cloudformation.engine.errors import CfnEvaluationException
from hotswap.cloudformation.engine.intrinsics import evaluate_intrinsic, parse_intrinsic
from hotswap.cloudformation.engine.lookups import LazyListStackResources, LazyLookupExport
from hotswap.cloudformation.engine.resource_attributes import format_resource_attribute
from hotswap.cloudformation.engine.template import (
    CfnExpression,
    NestedStackTemplates,
    StackResourceSummary,
    Template,
    find_nested_stack,
    parse_template,
    references,
)
from hotswap.constants import RESOURCE_TYPE_NESTED_STACK
from hotswap.logging.context import stack_context
from hotswap.utils.sync import SingleFlight

if TYPE_CHECKING:
    from hotswap.cloudformation.client import CloudFormationSdk

LOG = logging.getLogger(__name__)

PSEUDO_PARAMETER_URL_SUFFIX = "AWS::URLSuffix"
NESTED_STACK_OUTPUTS_PREFIX = "Outputs."


class EvaluateCloudFormationTemplate:
    """
    Evaluates CloudFormation expressions of a template against the currently deployed stack.

    Parameters and pseudo parameters are resolved from the evaluation context, everything else from the stack
    resources, the CloudFormation exports of the account, and the outputs of nested stacks. All remote state is
    fetched lazily, on first use, and at most once per evaluator.
    """

    stack_name: str
    template: Template
    context: dict[str, Any]
    account: str
    region: str
    partition: str
    sdk: "CloudFormationSdk"
    nested_stacks: dict[str, NestedStackTemplates]
    stack_resources: LazyListStackResources
    lookup_export: LazyLookupExport

    def __init__(
        self,
        *,
        stack_name: str,
        template: Union[Template, str],
        account: str,
        region: str,
        partition: str,
        sdk: "CloudFormationSdk",
        parameters: Optional[dict[str, Any]] = None,
        nested_stacks: Optional[dict[str, NestedStackTemplates]] = None,
    ):
        self.stack_name = stack_name
        self.template = parse_template(template) if isinstance(template, str) else template or {}
        self.context = {
            "AWS::AccountId": account,
            "AWS::Region": region,
            "AWS::Partition": partition,
            **(parameters or {}),
        }
        self.account = account
        self.region = region
        self.partition = partition
        self.sdk = sdk

        # names of the nested stacks, required to evaluate cross stack references
        self.nested_stacks = nested_stacks or {}

        # the current resources of the stack, required to figure out the physical name of a resource in case it
        # wasn't specified in the template. Fetched lazily, as all hotswapped resources may have their names set.
        self.stack_resources = LazyListStackResources(self.sdk, self.stack_name)

        # CloudFormation exports lookup, to resolve Fn::ImportValue intrinsics in the template
        self.lookup_export = LazyLookupExport(self.sdk)

        self._url_suffix = SingleFlight(self._fetch_url_suffix)

    async def create_nested_evaluate_cloud_formation_template(
        self,
        stack_name: str,
        nested_template: Template,
        nested_stack_parameters: Optional[dict[str, CfnExpression]],
    ) -> "EvaluateCloudFormationTemplate":
        """Create an evaluator for a nested stack, with its parameters evaluated in the context of this stack."""
        evaluated_params = await self.evaluate_cfn_expression(nested_stack_parameters)
        return EvaluateCloudFormationTemplate(
            stack_name=stack_name,
            template=nested_template,
            parameters=evaluated_params,
            account=self.account,
            region=self.region,
            partition=self.partition,
            sdk=self.sdk,
            nested_stacks=self.nested_stacks,
        )

    async def establish_resource_physical_name(
        self, logical_id: str, physical_name_in_cfn_template: CfnExpression = None
    ) -> Optional[str]:
        """
        Determine the physical name of a resource, by evaluating the name given in the template, or if it's not
        given or cannot be evaluated, by looking up the resource in the deployed stack.
        """
        if physical_name_in_cfn_template is not None:
            try:
                return await self.evaluate_cfn_expression(physical_name_in_cfn_template)
            except CfnEvaluationException as e:
                LOG.debug(
                    "Unable to evaluate physical name of resource %s, looking it up in stack %s: %s",
                    logical_id,
                    self.stack_name,
                    e,
                )
        return await self.find_physical_name_for(logical_id)

    async def find_physical_name_for(self, logical_id: str) -> Optional[str]:
        resource = await self._find_stack_resource(logical_id)
        return resource.get("PhysicalResourceId") if resource else None

    async def find_logical_id_for_physical_name(self, physical_name: str) -> Optional[str]:
        stack_resources = await self.stack_resources.list_stack_resources()
        for stack_resource in stack_resources:
            if stack_resource.get("PhysicalResourceId") == physical_name:
                return stack_resource.get("LogicalResourceId")
        return None

    def find_references_to(self, logical_id: str) -> list[dict]:
        """Return the definitions of all other resources in the template that reference the given logical id."""
        result = []
        for resource_logical_id, resource_def in (self.template.get("Resources") or {}).items():
            if logical_id != resource_logical_id and references(logical_id, resource_def):
                result.append({**resource_def, "LogicalId": resource_logical_id})
        return result

    def get_resource_property(self, logical_id: str, property_name: str) -> Any:
        resource = (self.template.get("Resources") or {}).get(logical_id) or {}
        return (resource.get("Properties") or {}).get(property_name)

    async def evaluate_cfn_expression(self, cfn_expression: CfnExpression) -> Any:
        """
        Evaluate the given template fragment, and return it with all intrinsic functions replaced by their values.

        :param cfn_expression: arbitrary JSON-like template fragment
        :return: the evaluated fragment
        :raises CfnEvaluationException: if an intrinsic function is not supported or cannot be resolved
        """
        if cfn_expression is None:
            return cfn_expression

        if isinstance(cfn_expression, list):
            # small lists in practice, no need to bound the concurrency
            return list(await asyncio.gather(*[self.evaluate_cfn_expression(expr) for expr in cfn_expression]))

        if isinstance(cfn_expression, dict):
            intrinsic = parse_intrinsic(cfn_expression)
            if intrinsic:
                with stack_context(self.stack_name):
                    return await evaluate_intrinsic(self, intrinsic)
            result = {}
            for key, value in cfn_expression.items():
                result[key] = await self.evaluate_cfn_expression(value)
            return result

        return cfn_expression

    async def find_ref_target(self, logical_id: str) -> Any:
        if logical_id == PSEUDO_PARAMETER_URL_SUFFIX:
            return await self._url_suffix.get()

        # parameters passed in, and pseudo parameters
        parameter_target = self.context.get(logical_id)
        if parameter_target:
            return parameter_target

        # default value of a template parameter that was not passed in
        parameter = (self.template.get("Parameters") or {}).get(logical_id) or {}
        default_parameter_value = parameter.get("Default")
        if default_parameter_value:
            return default_parameter_value

        # if it's not a parameter, it's the physical id of a stack resource
        return await self.find_get_att_target(logical_id)

    async def find_get_att_target(self, logical_id: str, attribute: Optional[str] = None) -> Any:
        # attribute referencing an output of this stack, used in nested stacks to share parameters
        # See https://docs.aws.amazon.com/AWSCloudFormation/latest/UserGuide/quickref-cloudformation.html
        if logical_id == "Outputs" and attribute:
            output = (self.template.get("Outputs") or {}).get(attribute) or {}
            return await self.evaluate_cfn_expression(output.get("Value"))

        found_resource = await self._find_stack_resource(logical_id)
        if not found_resource:
            return None

        if found_resource.get("ResourceType") == RESOURCE_TYPE_NESTED_STACK and (attribute or "").startswith(
            NESTED_STACK_OUTPUTS_PREFIX
        ):
            return await self._find_nested_stack_output(logical_id, attribute)

        return format_resource_attribute(
            found_resource,
            attribute,
            partition=self.partition,
            region=self.region,
            account=self.account,
        )

    async def _find_nested_stack_output(self, logical_id: str, attribute: str) -> Any:
        nested_stack = find_nested_stack(logical_id, self.nested_stacks)
        if not nested_stack or not nested_stack.physical_name:
            # a newly created nested stack, there is nothing deployed to evaluate against
            LOG.debug("Nested stack %s of stack %s is not deployed yet", logical_id, self.stack_name)
            return None

        nested_evaluator = await self.create_nested_evaluate_cloud_formation_template(
            nested_stack.physical_name,
            nested_stack.generated_template,
            nested_stack.generated_template.get("Parameters"),
        )
        # "Outputs.<name>" becomes GetAtt(Outputs, <name>) in the nested stack
        head, _, tail = attribute.partition(".")
        return await nested_evaluator.evaluate_cfn_expression({"Fn::GetAtt": [head, tail]})

    async def _find_stack_resource(self, logical_id: str) -> Optional[StackResourceSummary]:
        stack_resources = await self.stack_resources.list_stack_resources()
        for stack_resource in stack_resources:
            if stack_resource.get("LogicalResourceId") == logical_id:
                return stack_resource
        return None

    async def _fetch_url_suffix(self) -> str:
        return await self.sdk.get_url_suffix(self.region)
