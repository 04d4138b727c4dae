import pymongo


def get_client(mongo_uri: str, server_selection_timeout_ms: int = 10000) -> pymongo.MongoClient:
    """Create a MongoClient from a URI. Caller is responsible for closing it.

    Looking up pymongo.MongoClient at call time allows tests to monkeypatch
    `pymongo.MongoClient` (e.g., with mongomock) and have our code pick it up.
    """
    client = pymongo.MongoClient(mongo_uri, serverSelectionTimeoutMS=server_selection_timeout_ms)
    return client
