"""
Handlers of the CloudFormation intrinsic functions supported by the template evaluator.

See: https://docs.aws.amazon.com/AWSCloudFormation/latest/UserGuide/intrinsic-function-reference.html
"""

import logging
import re
from typing import TYPE_CHECKING, Any, Awaitable, Callable, NamedTuple, Optional

from hotswap.cloudformation.engine.errors import CfnEvaluationException
from hotswap.cloudformation.engine.template import CfnExpression

if TYPE_CHECKING:
    from hotswap.cloudformation.engine.evaluator import EvaluateCloudFormationTemplate

LOG = logging.getLogger(__name__)

INTRINSIC_REF = "Ref"
INTRINSIC_FUNCTION_PREFIX = "Fn::"

SUB_PLACEHOLDER_REGEX = re.compile(r"\$\{([^}]*)\}")


class Intrinsic(NamedTuple):
    name: str
    args: CfnExpression


class SubSegment(NamedTuple):
    literal: str
    placeholder: Optional[str]


IntrinsicHandler = Callable[..., Awaitable[Any]]


def parse_intrinsic(value: CfnExpression) -> Optional[Intrinsic]:
    """Return the intrinsic function call in the given value, or None if the value is not an intrinsic."""
    if not isinstance(value, dict) or len(value) != 1:
        return None
    name, args = next(iter(value.items()))
    if name == INTRINSIC_REF or name.startswith(INTRINSIC_FUNCTION_PREFIX):
        return Intrinsic(name, args)
    return None


def tokenize_sub_template(template: str) -> list[SubSegment]:
    """
    Split the template string of an ``Fn::Sub`` into segments, each consisting of the literal text preceding a
    placeholder and the placeholder itself. Escaped placeholders (``${!Literal}``) become the literal text ``${Literal}``,
    and the last segment holds the trailing text. Segments without a placeholder have a placeholder of None.
    """
    segments = []
    start = 0
    for match in SUB_PLACEHOLDER_REGEX.finditer(template):
        placeholder = match.group(1)
        if placeholder.startswith("!"):
            segments.append(SubSegment(template[start : match.start()] + "${" + placeholder[1:] + "}", None))
        else:
            segments.append(SubSegment(template[start : match.start()], placeholder))
        start = match.end()
    segments.append(SubSegment(template[start:], None))
    return segments


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


async def ref(evaluator: "EvaluateCloudFormationTemplate", logical_id: str) -> Any:
    ref_target = await evaluator.find_ref_target(logical_id)
    if ref_target:
        return ref_target
    raise CfnEvaluationException(f"Parameter or resource '{logical_id}' could not be found for evaluation")


async def fn_get_att(
    evaluator: "EvaluateCloudFormationTemplate", logical_id: str, attribute_name: Optional[str] = None
) -> Any:
    # the legacy 'logicalId.attributeName' string form is not supported, it is looked up as a logical id
    attr_value = await evaluator.find_get_att_target(logical_id, attribute_name)
    if attr_value:
        return attr_value
    raise CfnEvaluationException(
        f"Attribute '{attribute_name}' of resource '{logical_id}' could not be found for evaluation"
    )


async def fn_join(evaluator: "EvaluateCloudFormationTemplate", separator: str, values: CfnExpression) -> str:
    evaluated = await evaluator.evaluate_cfn_expression(values)
    if not isinstance(evaluated, list):
        raise CfnEvaluationException(f"Fn::Join expects a list of values, got: {evaluated}")
    return separator.join(_to_str(value) for value in evaluated)


async def fn_split(evaluator: "EvaluateCloudFormationTemplate", separator: str, source: CfnExpression) -> list:
    evaluated = await evaluator.evaluate_cfn_expression(source)
    if not isinstance(evaluated, str):
        raise CfnEvaluationException(f"Fn::Split expects a string, got: {evaluated}")
    return evaluated.split(separator)


def _parse_index(index: Any) -> Optional[int]:
    # non-negative integers, or their string form
    if isinstance(index, bool):
        return None
    try:
        position = int(index)
    except (TypeError, ValueError):
        return None
    return position if position >= 0 else None


async def fn_select(evaluator: "EvaluateCloudFormationTemplate", index: Any, values: CfnExpression) -> Any:
    index = await evaluator.evaluate_cfn_expression(index)
    evaluated = await evaluator.evaluate_cfn_expression(values)
    if not isinstance(evaluated, list):
        raise CfnEvaluationException(f"Fn::Select expects a list of values, got: {evaluated}")
    position = _parse_index(index)
    if position is None or position >= len(evaluated):
        raise CfnEvaluationException(f"Fn::Select index {index} is invalid for list of length {len(evaluated)}")
    return evaluated[position]


async def fn_sub(
    evaluator: "EvaluateCloudFormationTemplate",
    template: str,
    explicit_placeholders: Optional[CfnExpression] = None,
) -> str:
    placeholders = (
        await evaluator.evaluate_cfn_expression(explicit_placeholders) if explicit_placeholders else {}
    )
    result = []
    # placeholders are resolved one after the other, in the order they appear in the template
    for segment in tokenize_sub_template(template):
        result.append(segment.literal)
        if segment.placeholder is None:
            continue
        key = segment.placeholder
        if key in placeholders:
            value = placeholders[key]
        else:
            split_key = key.split(".")
            if len(split_key) == 1:
                value = await ref(evaluator, key)
            else:
                value = await fn_get_att(evaluator, split_key[0], ".".join(split_key[1:]))
        result.append(_to_str(value))
    return "".join(result)


async def fn_import_value(evaluator: "EvaluateCloudFormationTemplate", name: CfnExpression) -> str:
    if not isinstance(name, str):
        name = await evaluator.evaluate_cfn_expression(name)
    exported = await evaluator.lookup_export.lookup_export(name)
    if not exported:
        raise CfnEvaluationException(f"Export '{name}' could not be found for evaluation")
    if not exported.get("Value"):
        raise CfnEvaluationException(f"Export '{name}' exists without a value")
    return exported["Value"]


INTRINSIC_HANDLERS: dict[str, IntrinsicHandler] = {
    "Ref": ref,
    "Fn::GetAtt": fn_get_att,
    "Fn::Join": fn_join,
    "Fn::Split": fn_split,
    "Fn::Select": fn_select,
    "Fn::Sub": fn_sub,
    "Fn::ImportValue": fn_import_value,
}


async def evaluate_intrinsic(evaluator: "EvaluateCloudFormationTemplate", intrinsic: Intrinsic) -> Any:
    handler = INTRINSIC_HANDLERS.get(intrinsic.name)
    if not handler:
        raise CfnEvaluationException(f"CloudFormation function {intrinsic.name} is not supported")
    args = intrinsic.args if isinstance(intrinsic.args, list) else [intrinsic.args]
    LOG.debug("Evaluating %s%s", intrinsic.name, args)
    return await handler(evaluator, *args)
