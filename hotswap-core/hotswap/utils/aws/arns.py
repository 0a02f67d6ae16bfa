import logging
from typing import Optional

from hotswap.constants import DEFAULT_AWS_PARTITION, PARTITION_URL_SUFFIXES

LOG = logging.getLogger(__name__)

#
# Partition Utilities
#

DEFAULT_PARTITION = DEFAULT_AWS_PARTITION
REGION_PREFIX_TO_PARTITION = {
    # (region prefix, aws partition)
    "cn-": "aws-cn",
    "us-gov-": "aws-us-gov",
    "us-iso-": "aws-iso",
    "us-isob-": "aws-iso-b",
}
PARTITION_NAMES = list(REGION_PREFIX_TO_PARTITION.values()) + [DEFAULT_PARTITION]


def get_partition(region: Optional[str]) -> str:
    if not region:
        return DEFAULT_PARTITION
    if region in PARTITION_NAMES:
        return region
    for prefix in REGION_PREFIX_TO_PARTITION:
        if region.startswith(prefix):
            return REGION_PREFIX_TO_PARTITION[prefix]
    return DEFAULT_PARTITION


def get_url_suffix(region: Optional[str]) -> str:
    """Return the DNS suffix of service endpoints in the partition of the given region."""
    partition = get_partition(region)
    return PARTITION_URL_SUFFIXES.get(partition, PARTITION_URL_SUFFIXES[DEFAULT_PARTITION])
