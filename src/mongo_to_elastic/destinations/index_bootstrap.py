"""
Target index bootstrap.

Makes sure the Elasticsearch index exists before the change stream opens.
The index is created with the cluster's default settings and dynamic mapping.
"""

import logging
from typing import Optional, Union

from elasticsearch import ApiError, BadRequestError, Elasticsearch, TransportError

from ..errors import IndexBootstrapError

logger = logging.getLogger(__name__)


def ensure_index(
    client: Elasticsearch,
    index_name: str,
    log: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None
) -> bool:
    """
    Create ``index_name`` if it does not exist yet.

    Args:
        client: Elasticsearch client
        index_name: Target index name
        log: Logger to report through (defaults to the module logger)

    Returns:
        True if the index was created by this call, False if it already existed

    Raises:
        IndexBootstrapError: If existence check or creation fails
    """
    log = log or logger
    log.info("EnsureIndexCreated begin", extra={"index": index_name})

    try:
        if client.indices.exists(index=index_name):
            log.info("EnsureIndexCreated end, index already exists", extra={"index": index_name})
            return False

        try:
            client.indices.create(index=index_name)
        except BadRequestError as e:
            # Another writer created it between exists and create
            if e.error == "resource_already_exists_exception":
                log.info("Index created concurrently, nothing to do", extra={"index": index_name})
                return False
            raise

    except (ApiError, TransportError) as e:
        raise IndexBootstrapError(f"Failed to ensure index {index_name}: {e}") from e

    log.info(f"EnsureIndexCreated, created a new index: {index_name}", extra={"index": index_name})
    return True
