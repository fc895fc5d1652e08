#!/usr/bin/env python3
"""
Tests for BulkOperationCoordinator

Covers request validation, terminal status derivation, bounded concurrency,
cooperative cancellation, per-item timeouts and fatal authentication errors.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from ghx.domain.bulk import BulkOperationStatus, BulkOperationType
from ghx.engine.bulk_coordinator import BulkOperationCoordinator, validate_bulk_request
from ghx.errors import AuthenticationError, InvalidRequestError, NotFoundError, RemoteMutationError, RemoteUnavailableError
from ghx.provider.github_provider import GitHubProjectProvider
from ghx.provider.graphql_client import GitHubGraphQLClient


class TestValidateBulkRequest:
    """Tests for validate_bulk_request()"""

    def test_accepts_valid_update(self):
        """Test that a well-formed update passes"""
        validate_bulk_request(["PVTI_1"], {"Status": "Done"}, BulkOperationType.UPDATE, project_id="PVT_1")

    def test_rejects_empty_item_list(self):
        """Test that an empty item list is rejected"""
        with pytest.raises(InvalidRequestError, match="no items specified"):
            validate_bulk_request([], {"Status": "Done"}, BulkOperationType.UPDATE)

    def test_rejects_blank_item_id(self):
        with pytest.raises(InvalidRequestError, match="blank"):
            validate_bulk_request(["PVTI_1", "  "], None, BulkOperationType.DELETE)

    def test_rejects_update_without_fields(self):
        """Test that UPDATE requires at least one field update"""
        with pytest.raises(InvalidRequestError, match="no field updates"):
            validate_bulk_request(["PVTI_1"], {}, BulkOperationType.UPDATE)

    def test_delete_needs_no_fields(self):
        validate_bulk_request(["PVTI_1"], None, BulkOperationType.DELETE)

    def test_rejects_blank_project_id(self):
        with pytest.raises(InvalidRequestError, match="project id"):
            validate_bulk_request(["PVTI_1"], None, BulkOperationType.ARCHIVE, project_id=" ")


class TestCoordinatorValidation:
    """Tests that invalid requests never reach the provider"""

    @pytest.mark.asyncio
    async def test_empty_item_list_makes_no_remote_calls(self, fake_provider):
        """Test the zero-remote-call guarantee for an empty request"""
        coordinator = BulkOperationCoordinator(fake_provider)

        with pytest.raises(InvalidRequestError):
            await coordinator.submit("PVT_1", [], {"Status": "Done"})

        assert fake_provider.call_count == 0

    @pytest.mark.asyncio
    async def test_empty_item_list_for_project_reference_makes_no_remote_calls(self, fake_provider):
        coordinator = BulkOperationCoordinator(fake_provider)

        with pytest.raises(InvalidRequestError):
            await coordinator.submit_to_project("octo-org", 5, [], {"Status": "Done"})

        assert fake_provider.call_count == 0

    @pytest.mark.asyncio
    async def test_unsupported_operation_type(self, fake_provider):
        """Test that IMPORT is reported as unsupported"""
        coordinator = BulkOperationCoordinator(fake_provider)

        with pytest.raises(InvalidRequestError, match="not supported"):
            await coordinator.submit("PVT_1", ["PVTI_1"], op_type="IMPORT")

        assert fake_provider.call_count == 0

    def test_rejects_non_positive_workers(self, fake_provider):
        with pytest.raises(ValueError, match="max_workers"):
            BulkOperationCoordinator(fake_provider, max_workers=0)


class TestCoordinatorOutcomes:
    """Tests for terminal status derivation"""

    @pytest.mark.asyncio
    async def test_all_items_succeed(self, provider_factory):
        """Test COMPLETED when every item succeeds"""
        provider = provider_factory()
        coordinator = BulkOperationCoordinator(provider)

        operation = await coordinator.submit("PVT_1", ["a", "b", "c"], {"Status": "Done"})

        assert operation.status == BulkOperationStatus.COMPLETED
        assert operation.processed_items == 3
        assert operation.failed_items == 0
        assert operation.progress == 1.0
        assert operation.error_message is None
        assert operation.completed_at is not None
        assert sorted(call[1] for call in provider.mutate_calls) == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_one_failure_is_partial(self, provider_factory):
        """Test PARTIALLY_FAILED with processed=3, failed=1"""
        provider = provider_factory(failures={"b": "field not found"})
        coordinator = BulkOperationCoordinator(provider)

        operation = await coordinator.submit("PVT_1", ["a", "b", "c"], {"Status": "Done"})

        assert operation.status == BulkOperationStatus.PARTIALLY_FAILED
        assert operation.processed_items == 3
        assert operation.failed_items == 1
        assert operation.item_errors == {"b": "field not found"}
        assert "1 of 3 items failed" in operation.error_message

    @pytest.mark.asyncio
    async def test_every_item_failing_is_failed(self, provider_factory):
        """Test FAILED when failed == total"""
        provider = provider_factory(failures={"a": "denied", "b": RemoteMutationError("rejected")})
        coordinator = BulkOperationCoordinator(provider)

        operation = await coordinator.submit("PVT_1", ["a", "b"], op_type=BulkOperationType.DELETE)

        assert operation.status == BulkOperationStatus.FAILED
        assert operation.processed_items == 2
        assert operation.failed_items == 2
        assert operation.item_errors["b"] == "rejected"
        assert operation.error_message.startswith("all 2 items failed")

    @pytest.mark.asyncio
    async def test_each_item_attempted_once(self, provider_factory):
        provider = provider_factory()
        coordinator = BulkOperationCoordinator(provider, max_workers=4)
        item_ids = [f"PVTI_{i}" for i in range(20)]

        operation = await coordinator.submit("PVT_1", item_ids, op_type="archive")

        assert operation.processed_items == 20
        assert sorted(call[1] for call in provider.mutate_calls) == sorted(item_ids)
        assert all(call[2] == BulkOperationType.ARCHIVE for call in provider.mutate_calls)

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, provider_factory):
        """Test that no more than max_workers mutations run at once"""
        provider = provider_factory(delay=0.01)
        coordinator = BulkOperationCoordinator(provider, max_workers=3)

        await coordinator.submit("PVT_1", [f"PVTI_{i}" for i in range(10)], op_type="delete")

        assert provider.max_in_flight == 3

    @pytest.mark.asyncio
    async def test_progress_callback_receives_snapshots(self, provider_factory):
        provider = provider_factory()
        seen = []
        coordinator = BulkOperationCoordinator(provider, max_workers=1, progress_callback=seen.append)

        operation = await coordinator.submit("PVT_1", ["a", "b", "c", "d"], op_type="delete")

        assert [snapshot.processed_items for snapshot in seen] == [1, 2, 3, 4]
        assert seen[1].progress == 0.5
        assert seen[-1] is not operation

    @pytest.mark.asyncio
    async def test_get_operation_returns_terminal_record(self, provider_factory):
        coordinator = BulkOperationCoordinator(provider_factory())

        operation = await coordinator.submit("PVT_1", ["a"], op_type="delete")

        stored = coordinator.get_operation(operation.id)
        assert stored.status == BulkOperationStatus.COMPLETED
        assert stored.processed_items == 1

    def test_get_unknown_operation(self, provider_factory):
        coordinator = BulkOperationCoordinator(provider_factory())

        with pytest.raises(NotFoundError):
            coordinator.get_operation("bulk_missing")


class TestCoordinatorCancellationAndTimeouts:
    """Tests for cancellation, timeouts and fatal errors"""

    @pytest.mark.asyncio
    async def test_cancellation_stops_dispatch(self, provider_factory):
        """Test that no new item starts after cancel and the operation FAILS"""
        provider = provider_factory()
        cancel_event = asyncio.Event()

        def cancel_after_two(snapshot):
            if snapshot.processed_items == 2:
                cancel_event.set()

        coordinator = BulkOperationCoordinator(provider, max_workers=1, progress_callback=cancel_after_two)

        operation = await coordinator.submit(
            "PVT_1", ["a", "b", "c", "d", "e"], op_type="delete", cancel_event=cancel_event
        )

        assert operation.status == BulkOperationStatus.FAILED
        assert operation.processed_items == 2
        assert len(provider.mutate_calls) == 2
        assert operation.error_message == "Operation cancelled after 2 of 5 items"

    @pytest.mark.asyncio
    async def test_handle_cancel(self, provider_factory):
        provider = provider_factory(delay=0.01)
        coordinator = BulkOperationCoordinator(provider, max_workers=1)

        handle = coordinator.start("PVT_1", [f"PVTI_{i}" for i in range(50)], op_type="delete")
        handle.cancel()
        operation = await handle.result()

        assert handle.cancel_requested
        assert handle.done()
        assert operation.status == BulkOperationStatus.FAILED
        assert operation.processed_items < 50
        assert "cancelled" in operation.error_message

    @pytest.mark.asyncio
    async def test_item_timeout_counts_as_failure(self, provider_factory):
        """Test that a hung item fails with a timeout message and others complete"""
        provider = provider_factory(hang_items={"b"})
        coordinator = BulkOperationCoordinator(provider, item_timeout=0.05)

        operation = await coordinator.submit("PVT_1", ["a", "b", "c"], op_type="archive")

        assert operation.status == BulkOperationStatus.PARTIALLY_FAILED
        assert operation.failed_items == 1
        assert operation.item_errors["b"] == "timed out after 0.05s"
        assert provider.in_flight == 0

    @pytest.mark.asyncio
    async def test_authentication_error_aborts_batch(self, provider_factory):
        """Test that AuthenticationError propagates and the record is FAILED"""
        provider = provider_factory(failures={"b": AuthenticationError("token rejected")})
        coordinator = BulkOperationCoordinator(provider, max_workers=1)

        handle = coordinator.start("PVT_1", ["a", "b", "c"], op_type="delete")
        with pytest.raises(AuthenticationError):
            await handle.result()

        operation = coordinator.get_operation(handle.operation_id)
        assert operation.status == BulkOperationStatus.FAILED
        assert operation.processed_items == 1
        assert "token rejected" in operation.error_message


class TestSubmitToProject:
    """Tests for submit_to_project()"""

    @pytest.mark.asyncio
    async def test_resolves_project_then_runs(self, fake_provider):
        coordinator = BulkOperationCoordinator(fake_provider)

        operation = await coordinator.submit_to_project("octo-org", 5, ["PVTI_1"], {"Status": "Done"})

        assert operation.status == BulkOperationStatus.COMPLETED
        assert fake_provider.fetch_project_calls == 1
        assert fake_provider.mutate_calls == [("PVT_1", "PVTI_1", BulkOperationType.UPDATE, {"Status": "Done"})]

    @pytest.mark.asyncio
    async def test_unavailable_before_dispatch(self, fake_provider):
        """Test a FAILED record with processed=0 when the project cannot be resolved"""
        fake_provider.fetch_project_error = RemoteUnavailableError("connection refused")
        coordinator = BulkOperationCoordinator(fake_provider)

        operation = await coordinator.submit_to_project("octo-org", 5, ["PVTI_1", "PVTI_2"], op_type="delete")

        assert operation.status == BulkOperationStatus.FAILED
        assert operation.processed_items == 0
        assert operation.total_items == 2
        assert "connection refused" in operation.error_message
        assert fake_provider.mutate_calls == []
        assert coordinator.get_operation(operation.id).status == BulkOperationStatus.FAILED

    @pytest.mark.asyncio
    async def test_project_not_found_propagates(self, fake_provider):
        fake_provider.fetch_project_error = NotFoundError("project octo-org/5 not found")
        coordinator = BulkOperationCoordinator(fake_provider)

        with pytest.raises(NotFoundError):
            await coordinator.submit_to_project("octo-org", 5, ["PVTI_1"], op_type="delete")


class TestCoordinatorOverGraphQL:
    """Tests driving the coordinator through the real provider and GraphQL client"""

    @pytest.mark.asyncio
    async def test_html_body_fails_only_that_item(self):
        """Test that a 200 HTML page for one archive leaves the rest of the batch intact"""
        api_url = "https://api.github.com/graphql"

        async def post(url, headers=None, json=None):
            request = httpx.Request("POST", url)
            if json["variables"]["itemId"] == "B":
                return httpx.Response(200, text="<html>upstream hiccup</html>", request=request)
            return httpx.Response(200, json={"data": {"archiveProjectV2Item": {"item": {"id": "x"}}}}, request=request)

        http = MagicMock()
        http.post = AsyncMock(side_effect=post)
        factory = MagicMock()
        factory.return_value.__aenter__ = AsyncMock(return_value=http)
        factory.return_value.__aexit__ = AsyncMock(return_value=None)

        client = GitHubGraphQLClient(token="ghp_" + "a" * 36, api_url=api_url, timeout=5.0)
        coordinator = BulkOperationCoordinator(GitHubProjectProvider(client), max_workers=1)

        with (
            patch("ghx.provider.graphql_client.AsyncSecureHTTPClient", factory),
            patch("ghx.provider.graphql_client.asyncio.sleep", new_callable=AsyncMock),
        ):
            operation = await coordinator.submit("PVT_1", ["A", "B", "C"], op_type=BulkOperationType.ARCHIVE)

        assert operation.status == BulkOperationStatus.PARTIALLY_FAILED
        assert operation.processed_items == 3
        assert operation.failed_items == 1
        assert list(operation.item_errors) == ["B"]
        assert http.post.call_count == 3
