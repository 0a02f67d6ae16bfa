# truthy values of environment variables
TRUE_STRINGS = ("1", "true", "True")

# log levels accepted by HOTSWAP_LOG
LOG_LEVELS = ("trace-internal", "trace", "debug", "info", "warn", "error", "warning")

HOTSWAP_LOG_TRACE = "trace"
HOTSWAP_LOG_TRACE_INTERNAL = "trace-internal"
TRACE_LOG_LEVELS = [HOTSWAP_LOG_TRACE, HOTSWAP_LOG_TRACE_INTERNAL]

# default AWS region and partition, used if nothing else is configured
AWS_REGION_US_EAST_1 = "us-east-1"
DEFAULT_AWS_PARTITION = "aws"

# default number of worker threads used to run blocking SDK calls
DEFAULT_MAX_WORKERS = 10

# DNS suffix of service endpoints, per partition (value of the AWS::URLSuffix pseudo parameter)
PARTITION_URL_SUFFIXES = {
    "aws": "amazonaws.com",
    "aws-cn": "amazonaws.com.cn",
    "aws-us-gov": "amazonaws.com",
    "aws-iso": "c2s.ic.gov",
    "aws-iso-b": "sc2s.sgov.gov",
}

# CloudFormation resource type of nested stacks
RESOURCE_TYPE_NESTED_STACK = "AWS::CloudFormation::Stack"
