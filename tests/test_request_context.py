"""Tests for graphql_api_kit/requests/context.py."""

from __future__ import annotations

import asyncio
import dataclasses

import pytest

from graphql_api_kit.requests.context import (
    GraphQLOperation,
    HTTPRequest,
    OperationKind,
    RequestContext,
)

from conftest import ENDPOINT, HERO_QUERY


class TestGraphQLOperation:
    """Tests for GraphQLOperation helpers."""

    def test_kind_helpers(self):
        assert GraphQLOperation.query("{ a }").kind is OperationKind.QUERY
        assert GraphQLOperation.mutation("mutation { a }").kind is OperationKind.MUTATION
        assert GraphQLOperation.subscription("subscription { a }").kind is OperationKind.SUBSCRIPTION

    def test_name_from_document(self):
        """The operation name is read from the document when not given."""
        assert HERO_QUERY.name == "HeroName"

    def test_explicit_name_wins(self):
        op = GraphQLOperation.query("query HeroName { hero { name } }", operation_name="Other")
        assert op.name == "Other"

    def test_anonymous_operation_uses_kind(self):
        assert GraphQLOperation.query("{ hero { name } }").name == "query"

    def test_incremental_detection(self):
        """@defer and @stream mark an operation as incremental."""
        assert GraphQLOperation.query("{ hero { ... @defer { name } } }").incremental
        assert GraphQLOperation.query("{ heroes @stream(initialCount: 1) { name } }").incremental
        assert not HERO_QUERY.incremental

    def test_to_payload(self):
        op = GraphQLOperation.query(
            "query Hero($id: ID!) { hero(id: $id) { name } }",
            operation_name="Hero",
            variables={"id": "1"},
        )

        assert op.to_payload() == {
            "query": "query Hero($id: ID!) { hero(id: $id) { name } }",
            "operationName": "Hero",
            "variables": {"id": "1"},
        }

    def test_to_payload_omits_empty_fields(self):
        assert GraphQLOperation.query("{ a }").to_payload() == {"query": "{ a }"}


class TestRequestContext:
    """Tests for RequestContext."""

    def test_new_copies_operation_details(self):
        context = RequestContext.new(HERO_QUERY, ENDPOINT, attempt=2)

        assert context.operation_name == "HeroName"
        assert context.operation_kind is OperationKind.QUERY
        assert context.endpoint == ENDPOINT
        assert context.attempt == 2
        assert context.correlation_id

    def test_is_immutable(self):
        context = RequestContext.new(HERO_QUERY, ENDPOINT)

        with pytest.raises(dataclasses.FrozenInstanceError):
            context.correlation_id = "reused"  # type: ignore[misc]

    def test_sequential_correlation_ids_are_unique(self):
        """N sequential attempts produce N distinct correlation ids."""
        ids = [RequestContext.new(HERO_QUERY, ENDPOINT, attempt=n).correlation_id for n in range(500)]

        assert len(set(ids)) == len(ids)

    @pytest.mark.asyncio
    async def test_concurrent_correlation_ids_are_unique(self):
        """Contexts minted from concurrent tasks never share a correlation id."""

        async def mint() -> str:
            await asyncio.sleep(0)
            return RequestContext.new(HERO_QUERY, ENDPOINT).correlation_id

        ids = await asyncio.gather(*(mint() for _ in range(200)))

        assert len(set(ids)) == len(ids)


class TestHTTPRequest:
    """Tests for HTTPRequest."""

    def test_body_and_correlation_id(self):
        context = RequestContext.new(HERO_QUERY, ENDPOINT)
        request = HTTPRequest(context=context, operation=HERO_QUERY, url=ENDPOINT)

        assert request.method == "POST"
        assert request.body == {"query": HERO_QUERY.document}
        assert request.correlation_id == context.correlation_id
        assert request.headers == {}
