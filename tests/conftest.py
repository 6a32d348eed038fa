from collections import defaultdict

import pytest


class FakeCollection:
    """In-memory stand-in for the two pymongo.Collection calls the writer uses."""

    def __init__(self, fail_when=None):
        self.docs: dict = {}
        self.calls: list[tuple[str, dict]] = []
        self.fail_when = fail_when

    def _maybe_fail(self, payload: dict) -> None:
        if self.fail_when is not None and self.fail_when(payload):
            from pymongo.errors import OperationFailure

            raise OperationFailure("injected store failure")

    def _encode(self, payload: dict) -> None:
        import bson

        # same encoding step the driver runs before sending
        bson.encode(payload)

    def replace_one(self, filter, replacement, upsert=False):
        self.calls.append(("replace_one", {**filter, **replacement}))
        self._encode({**filter, **replacement})
        self._maybe_fail({**filter, **replacement})
        key = filter["_id"]
        if key in self.docs or upsert:
            self.docs[key] = {"_id": key, **replacement}

    def insert_one(self, document):
        from bson import ObjectId

        self.calls.append(("insert_one", dict(document)))
        self._encode(document)
        self._maybe_fail(document)
        document["_id"] = ObjectId()
        self.docs[document["_id"]] = dict(document)


class FakeMongoClient:
    def __init__(self):
        self.databases = defaultdict(lambda: defaultdict(FakeCollection))
        self.closed = False

    def __getitem__(self, name):
        return self.databases[name]

    def close(self):
        self.closed = True


@pytest.fixture
def fake_collection():
    return FakeCollection()


@pytest.fixture
def fake_client():
    return FakeMongoClient()


@pytest.fixture
def make_collection():
    return FakeCollection
