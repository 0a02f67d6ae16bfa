"""
Formatting of resource attributes (mostly ARNs) from the physical id of a deployed resource.

Usually, the names of the service and the resource type used to format the ARN can be deduced from the
CloudFormation resource type: for ``AWS::Service::ResourceType``, the second segment becomes the service name, and the
third the resource type (both lower-cased). Resource types that break this convention are listed in
``RESOURCE_TYPE_SPECIAL_NAMES``.

ARN shapes are not uniform across services, so only the resource types and attributes listed in
``RESOURCE_TYPE_ATTRIBUTES_FORMATS`` are supported.
"""

import logging
from typing import Callable, Optional, TypedDict

from hotswap.cloudformation.engine.errors import CfnEvaluationException
from hotswap.cloudformation.engine.template import StackResourceSummary

LOG = logging.getLogger(__name__)


class ArnParts(TypedDict):
    partition: str
    service: str
    region: str
    account: str
    resource_type: str
    resource_name: str


AttributeFormatter = Callable[[ArnParts], Optional[str]]


def iam_arn_fmt(parts: ArnParts) -> str:
    # IAM is global, no region
    return f"arn:{parts['partition']}:{parts['service']}::{parts['account']}:{parts['resource_type']}/{parts['resource_name']}"


def s3_arn_fmt(parts: ArnParts) -> str:
    # no account, region or resource type for S3 resources
    return f"arn:{parts['partition']}:{parts['service']}:::{parts['resource_name']}"


def std_colon_resource_arn_fmt(parts: ArnParts) -> str:
    # arn:aws:service:region:account:resourceType:resourceName
    return (
        f"arn:{parts['partition']}:{parts['service']}:{parts['region']}:{parts['account']}:"
        f"{parts['resource_type']}:{parts['resource_name']}"
    )


def std_slash_resource_arn_fmt(parts: ArnParts) -> str:
    # arn:aws:service:region:account:resourceType/resourceName
    return (
        f"arn:{parts['partition']}:{parts['service']}:{parts['region']}:{parts['account']}:"
        f"{parts['resource_type']}/{parts['resource_name']}"
    )


def _path_segment(physical_id: str, index: int) -> Optional[str]:
    # the physical ids of AppSync resources are ARNs with a path-like resource part
    path = physical_id.split("/")
    return path[index] if len(path) > index else None


def appsync_graphql_api_api_id_fmt(parts: ArnParts) -> Optional[str]:
    # arn:aws:appsync:us-east-1:111111111111:apis/<apiId>
    return _path_segment(parts["resource_name"], 1)


def appsync_graphql_function_id_fmt(parts: ArnParts) -> Optional[str]:
    # arn:aws:appsync:us-east-1:111111111111:apis/<apiId>/functions/<functionId>
    return _path_segment(parts["resource_name"], 3)


def appsync_graphql_data_source_name_fmt(parts: ArnParts) -> Optional[str]:
    # arn:aws:appsync:us-east-1:111111111111:apis/<apiId>/datasources/<name>
    return _path_segment(parts["resource_name"], 3)


RESOURCE_TYPE_SPECIAL_NAMES: dict[str, str] = {
    "AWS::Events::EventBus": "event-bus",
}

RESOURCE_TYPE_ATTRIBUTES_FORMATS: dict[str, dict[str, AttributeFormatter]] = {
    "AWS::IAM::Role": {"Arn": iam_arn_fmt},
    "AWS::IAM::User": {"Arn": iam_arn_fmt},
    "AWS::IAM::Group": {"Arn": iam_arn_fmt},
    "AWS::S3::Bucket": {"Arn": s3_arn_fmt},
    "AWS::Lambda::Function": {"Arn": std_colon_resource_arn_fmt},
    "AWS::Events::EventBus": {
        "Arn": std_slash_resource_arn_fmt,
        # the name of an event bus is its Ref value
        "Name": lambda parts: parts["resource_name"],
    },
    "AWS::DynamoDB::Table": {"Arn": std_slash_resource_arn_fmt},
    "AWS::AppSync::GraphQLApi": {"ApiId": appsync_graphql_api_api_id_fmt},
    "AWS::AppSync::FunctionConfiguration": {"FunctionId": appsync_graphql_function_id_fmt},
    "AWS::AppSync::DataSource": {"Name": appsync_graphql_data_source_name_fmt},
    "AWS::KMS::Key": {"Arn": std_slash_resource_arn_fmt},
}


def get_service_of_resource_type(resource_type: str) -> str:
    return resource_type.split("::")[1].lower()


def get_resource_type_arn_part(resource_type: str) -> str:
    special_case = RESOURCE_TYPE_SPECIAL_NAMES.get(resource_type)
    if special_case:
        return special_case
    return resource_type.split("::")[2].lower()


def format_resource_attribute(
    resource: StackResourceSummary,
    attribute: Optional[str],
    *,
    partition: str,
    region: str,
    account: str,
) -> Optional[str]:
    """
    Format the value of an attribute of a deployed resource.

    :param resource: the deployed resource, as returned by ListStackResources
    :param attribute: the attribute name, or None for the value of a ``Ref`` to the resource
    :return: the attribute value, or None if it cannot be derived from the physical id
    :raises CfnEvaluationException: if the resource type, or the attribute of the resource type, is not supported
    """
    physical_id = resource.get("PhysicalResourceId")
    # no attribute means a Ref expression, which evaluates to the physical id
    if not attribute:
        return physical_id

    resource_type = resource.get("ResourceType") or ""
    type_formats = RESOURCE_TYPE_ATTRIBUTES_FORMATS.get(resource_type)
    if not type_formats:
        LOG.debug("No attribute formats for resource type %s", resource_type)
        raise CfnEvaluationException(
            f"We don't support attributes of the '{resource_type}' resource. This is a limitation of hotswap deployments."
        )
    attribute_fmt = type_formats.get(attribute)
    if not attribute_fmt:
        LOG.debug("No format for attribute %s of resource type %s", attribute, resource_type)
        raise CfnEvaluationException(
            f"We don't support the '{attribute}' attribute of the '{resource_type}' resource. This is a limitation of hotswap deployments."
        )

    return attribute_fmt(
        ArnParts(
            partition=partition,
            service=get_service_of_resource_type(resource_type),
            region=region,
            account=account,
            resource_type=get_resource_type_arn_part(resource_type),
            resource_name=physical_id,
        )
    )
