"""
Shared test fixtures and configuration for pytest.
"""

import copy
import logging
import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


logger = logging.getLogger(__name__)

SPACE_ID = "cfexampleapi"


def link(link_type: str, resource_id: str) -> dict:
    return {"sys": {"type": "Link", "linkType": link_type, "id": resource_id}}


# ============================================================================
# Raw documents
# ============================================================================

SPACE_JSON = {
    "sys": {"type": "Space", "id": SPACE_ID},
    "name": "Contentful Example API",
    "locales": [
        {"code": "en-US", "default": True, "name": "English (United States)", "fallbackCode": None},
        {"code": "tlh", "default": False, "name": "Klingon", "fallbackCode": "en-US"},
        {"code": "de-DE", "default": False, "name": "German", "fallbackCode": "en-US"},
    ],
}

CAT_CONTENT_TYPE_JSON = {
    "sys": {
        "space": link("Space", SPACE_ID),
        "type": "ContentType",
        "id": "cat",
        "revision": 2,
        "createdAt": "2013-06-27T22:46:12.852Z",
        "updatedAt": "2013-09-02T13:14:47.863Z",
    },
    "name": "Cat",
    "description": "Meow.",
    "displayField": "name",
    "fields": [
        {"id": "name", "name": "Name", "type": "Text", "required": True, "localized": True},
        {"id": "likes", "name": "Likes", "type": "Array", "items": {"type": "Symbol"}},
        {"id": "color", "name": "Color", "type": "Symbol"},
        {"id": "bestFriend", "name": "Best Friend", "type": "Link", "linkType": "Entry"},
        {"id": "birthday", "name": "Birthday", "type": "Date"},
        {"id": "lifes", "name": "Lifes left", "type": "Integer", "disabled": True},
        {"id": "lives", "name": "Lives left", "type": "Integer"},
        {"id": "image", "name": "Image", "type": "Link", "linkType": "Asset"},
    ],
}

NYANCAT_ENTRY_JSON = {
    "sys": {
        "space": link("Space", SPACE_ID),
        "type": "Entry",
        "contentType": link("ContentType", "cat"),
        "id": "nyancat",
        "revision": 5,
        "createdAt": "2013-06-27T22:46:19.513Z",
        "updatedAt": "2013-09-04T09:19:39.027Z",
    },
    "fields": {
        "name": {"en-US": "Nyan Cat", "tlh": "Nyan vIghro'"},
        "likes": {"en-US": ["rainbows", "fish"]},
        "color": {"en-US": "rainbow"},
        "bestFriend": {"en-US": link("Entry", "happycat")},
        "birthday": {"en-US": "2011-04-04T22:00:00Z"},
        "lives": {"en-US": 1337},
        "image": {"en-US": link("Asset", "nyancat")},
    },
}

HAPPYCAT_ENTRY_JSON = {
    "sys": {
        "space": link("Space", SPACE_ID),
        "type": "Entry",
        "contentType": link("ContentType", "cat"),
        "id": "happycat",
        "revision": 8,
        "createdAt": "2013-06-27T22:46:20.171Z",
        "updatedAt": "2013-11-18T15:58:02.018Z",
    },
    "fields": {
        "name": {"en-US": "Happy Cat", "tlh": "Quch vIghro'"},
        "likes": {"en-US": ["cheezburger"]},
        "color": {"en-US": "gray"},
        "bestFriend": {"en-US": link("Entry", "nyancat")},
        "birthday": {"en-US": "2003-10-28T23:00:00Z"},
        "lives": {"en-US": 1},
    },
}

NYANCAT_ASSET_JSON = {
    "sys": {
        "space": link("Space", SPACE_ID),
        "type": "Asset",
        "id": "nyancat",
        "revision": 1,
        "createdAt": "2013-09-02T14:56:34.240Z",
        "updatedAt": "2013-09-02T14:56:34.240Z",
    },
    "fields": {
        "title": {"en-US": "Nyan Cat", "de-DE": "Kater Karlo"},
        "description": {"en-US": "A picture of Nyan Cat", "de-DE": "Ein Bild von Nyan Cat"},
        "file": {
            "en-US": {
                "fileName": "Nyan_cat_250px_frame.png",
                "contentType": "image/png",
                "details": {"image": {"width": 250, "height": 250}, "size": 12273},
                "url": "//images.contentful.com/cfexampleapi/4gp6taAwW4CmSgumq2ekUm/"
                       "9da0cd1936871b8d72343e895a00d611/Nyan_cat_250px_frame.png",
            },
        },
    },
}

DELETED_ENTRY_JSON = {
    "sys": {
        "space": link("Space", SPACE_ID),
        "type": "DeletedEntry",
        "id": "garfield",
        "revision": 1,
        "createdAt": "2014-08-11T08:30:42.559Z",
        "updatedAt": "2014-08-11T08:30:42.559Z",
        "deletedAt": "2014-08-11T08:30:42.559Z",
    },
}

SYNC_URL = f"https://cdn.contentful.com/spaces/{SPACE_ID}/sync"


def sync_pages() -> dict:
    """Three pages of one initial sync pass, keyed by the token requesting them."""
    return {
        "initial": {
            "sys": {"type": "Array"},
            "items": [copy.deepcopy(NYANCAT_ENTRY_JSON), copy.deepcopy(NYANCAT_ASSET_JSON)],
            "nextPageUrl": f"{SYNC_URL}?sync_token=page2",
        },
        "page2": {
            "sys": {"type": "Array"},
            "items": [copy.deepcopy(HAPPYCAT_ENTRY_JSON)],
            "nextPageUrl": f"{SYNC_URL}?sync_token=page3",
        },
        "page3": {
            "sys": {"type": "Array"},
            "items": [copy.deepcopy(DELETED_ENTRY_JSON)],
            "nextSyncUrl": f"{SYNC_URL}?sync_token=next-sync",
        },
    }


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "slow: Tests that take a long time to run")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def space_json() -> dict:
    return copy.deepcopy(SPACE_JSON)


@pytest.fixture
def cat_json() -> dict:
    return copy.deepcopy(CAT_CONTENT_TYPE_JSON)


@pytest.fixture
def nyancat_json() -> dict:
    return copy.deepcopy(NYANCAT_ENTRY_JSON)


@pytest.fixture
def happycat_json() -> dict:
    return copy.deepcopy(HAPPYCAT_ENTRY_JSON)


@pytest.fixture
def asset_json() -> dict:
    return copy.deepcopy(NYANCAT_ASSET_JSON)


@pytest.fixture
def deleted_entry_json() -> dict:
    return copy.deepcopy(DELETED_ENTRY_JSON)


@pytest.fixture
def static_connector():
    """Fixture providing a static connector holding the space and the cat content type."""
    from delivery.connectors.static_connector import StaticConnector

    connector = StaticConnector([copy.deepcopy(SPACE_JSON), copy.deepcopy(CAT_CONTENT_TYPE_JSON)])
    yield connector
    connector.reset()


@pytest.fixture
def full_connector():
    """Fixture providing a static connector holding the whole example space."""
    from delivery.connectors.static_connector import StaticConnector

    return StaticConnector(
        [
            copy.deepcopy(SPACE_JSON),
            copy.deepcopy(CAT_CONTENT_TYPE_JSON),
            copy.deepcopy(NYANCAT_ENTRY_JSON),
            copy.deepcopy(HAPPYCAT_ENTRY_JSON),
            copy.deepcopy(NYANCAT_ASSET_JSON),
        ],
        sync_pages=sync_pages(),
    )


@pytest.fixture
def builder(static_connector):
    """Fixture providing a resource builder backed by the static connector."""
    from delivery.builder.resource_builder import ResourceBuilder
    from delivery.cache.identity import IdentityCache

    return ResourceBuilder(IdentityCache(), space_id=SPACE_ID, fetcher=static_connector)
