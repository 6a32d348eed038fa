from pymongo import MongoClient
from pymongo.collection import Collection


def get_mongo_client(mongo_url: str, server_selection_timeout_ms: int | None = None) -> MongoClient:
    kwargs = {}
    if server_selection_timeout_ms is not None:
        kwargs["serverSelectionTimeoutMS"] = server_selection_timeout_ms
    return MongoClient(mongo_url, tz_aware=True, **kwargs)


def get_collection(client: MongoClient, database: str, collection: str) -> Collection:
    return client[database][collection]
