"""Shared fixtures: a fake DevDocs server backed by httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Dict

import httpx
import pytest

from lazydocs.config import AppConfig
from lazydocs.remote.client import DevDocsClient

MANIFEST_URL = "https://devdocs.test/docs.json"
DOCS_BASE_URL = "https://documents.devdocs.test"

MANIFEST = [
    {
        "name": "Ruby on Rails",
        "slug": "rails~7.1",
        "type": "rails",
        "version": "7.1",
        "release": "7.1.3",
        "mtime": 1700000000,
        "db_size": 2048,
        "links": {"home": "https://rubyonrails.org/"},
    },
    {
        "name": "Go",
        "slug": "go",
        "type": "go",
        "version": "",
        "release": "1.22",
        "mtime": 1700000100,
        "db_size": 1024,
    },
]


class FakeDevDocs:
    """In-memory DevDocs hosts with switchable failures."""

    def __init__(self) -> None:
        self.manifest = list(MANIFEST)
        self.bundles: Dict[str, dict] = {}
        self.indexes: Dict[str, dict] = {}
        self.fail_manifest = False
        self.omit_length = False
        self.requests: list[str] = []

    def add_docset(self, slug: str, bundle: dict, entries: list) -> None:
        self.bundles[slug] = bundle
        self.indexes[slug] = {"entries": entries, "types": []}

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url == MANIFEST_URL:
            if self.fail_manifest:
                raise httpx.ConnectError("network down", request=request)
            return httpx.Response(200, json=self.manifest)
        prefix = DOCS_BASE_URL + "/"
        if url.startswith(prefix):
            slug, _, resource = url[len(prefix):].rpartition("/")
            if resource == "db.json" and slug in self.bundles:
                body = json.dumps(self.bundles[slug]).encode("utf-8")
                if self.omit_length:
                    return httpx.Response(200, content=iter([body]))
                return httpx.Response(200, content=body)
            if resource == "index.json" and slug in self.indexes:
                return httpx.Response(200, json=self.indexes[slug])
        return httpx.Response(404, text="not found")

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def count(self, url: str) -> int:
        return self.requests.count(url)


@pytest.fixture
def fake_devdocs() -> FakeDevDocs:
    return FakeDevDocs()


@pytest.fixture
def client(fake_devdocs: FakeDevDocs):
    devdocs = DevDocsClient(
        manifest_url=MANIFEST_URL,
        docs_base_url=DOCS_BASE_URL,
        chunk_size=16,
        http_client=fake_devdocs.http_client(),
    )
    yield devdocs
    devdocs.close()


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    return AppConfig(
        data_dir=tmp_path / "data",
        manifest_url=MANIFEST_URL,
        docs_base_url=DOCS_BASE_URL,
        chunk_size=16,
    )
