import elasticsearch


def get_client(elastic_url: str, request_timeout: float = 30.0) -> elasticsearch.Elasticsearch:
    """Create an Elasticsearch client from a URL. Caller is responsible for closing it.

    Resolved through the module attribute so tests can monkeypatch
    `elasticsearch.Elasticsearch` with an in-memory double.
    """
    client = elasticsearch.Elasticsearch(elastic_url, request_timeout=request_timeout)
    return client
