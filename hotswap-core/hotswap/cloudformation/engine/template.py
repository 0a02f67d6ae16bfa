import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, TypedDict

import yaml

LOG = logging.getLogger(__name__)

# type aliases for templates and arbitrary template fragments
Template = dict[str, Any]
CfnExpression = Any


class StackResourceSummary(TypedDict, total=False):
    LogicalResourceId: str
    PhysicalResourceId: str
    ResourceType: str


class CfnExport(TypedDict, total=False):
    Name: str
    Value: str
    ExportingStackId: str


@dataclass
class NestedStackTemplates:
    """Templates and physical name of a nested stack, including the templates of its own nested stacks."""

    physical_name: Optional[str]
    generated_template: Template
    deployed_template: Template = field(default_factory=dict)
    nested_stack_templates: dict[str, "NestedStackTemplates"] = field(default_factory=dict)


class CfnYamlLoader(yaml.SafeLoader):
    """
    Safe YAML loader for CloudFormation templates. Date strings are kept as strings, and the short form of the
    intrinsic functions (``!Ref``, ``!GetAtt``, ``!Sub``, ...) is turned into the long form.
    """


CfnYamlLoader.yaml_implicit_resolvers = {
    k: [r for r in v if r[0] != "tag:yaml.org,2002:timestamp"]
    for k, v in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def cfn_tag_constructor(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> dict:
    # `!Ref X` becomes {"Ref": X}, `!Condition X` {"Condition": X}, and `!Name X` {"Fn::Name": X}
    key = tag_suffix if tag_suffix in ("Ref", "Condition") else f"Fn::{tag_suffix}"
    if isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    elif isinstance(node, yaml.MappingNode):
        value = loader.construct_mapping(node, deep=True)
    else:
        value = loader.construct_scalar(node)
        if tag_suffix == "GetAtt":
            # `!GetAtt Resource.Attribute` is split at the first dot
            value = value.split(".", 1)
    return {key: value}


CfnYamlLoader.add_multi_constructor("!", cfn_tag_constructor)


def parse_template(template: str) -> Template:
    try:
        return json.loads(template)
    except Exception:
        return yaml.load(template, Loader=CfnYamlLoader)


def find_nested_stack(
    logical_id: str, nested_stacks: dict[str, NestedStackTemplates]
) -> Optional[NestedStackTemplates]:
    """Depth-first search for the nested stack with the given logical id, in a tree of nested stacks."""
    for nested_stack_logical_id, nested_stack in nested_stacks.items():
        if nested_stack_logical_id == logical_id:
            return nested_stack
        found = find_nested_stack(logical_id, nested_stack.nested_stack_templates)
        if found:
            return found
    return None


def references(logical_id: str, template_element: CfnExpression) -> bool:
    """Whether the given logical id appears as a string anywhere in the template element."""
    if isinstance(template_element, str):
        return logical_id == template_element
    if template_element is None:
        return False
    if isinstance(template_element, list):
        return any(references(logical_id, el) for el in template_element)
    if isinstance(template_element, dict):
        return any(references(logical_id, el) for el in template_element.values())
    return False
