"""Unit tests for the content comparator."""

from __future__ import annotations

import asyncio

import pytest

from orgdiff.compare import compare_entry, gather_pair, language_for_category, list_composite_files
from orgdiff.domain import Presence, Verdict
from orgdiff.exceptions import EnvironmentUnavailableError, ErrorKind, NotFoundError

ORG_A = "Org A"
ORG_B = "Org B"

pytestmark = pytest.mark.unit


class TestCompareEntry:
    """Test compare_entry verdicts and all-or-nothing failures."""

    @pytest.mark.asyncio
    async def test_Should_ReturnEqual_When_ContentsMatch(self, populated_gateway):
        result = await compare_entry(populated_gateway, "ApexClass", "Foo", ORG_A, ORG_B)

        assert result.success
        assert result.verdict is Verdict.EQUAL
        assert result.are_equal is True
        assert result.content_a == result.content_b == "public class Foo {}"
        assert result.language == "apex"

    @pytest.mark.asyncio
    async def test_Should_ReturnDifferent_When_ContentsDiffer(self, populated_gateway):
        populated_gateway.contents[(ORG_B, "ApexClass", "Foo", None)] = "public class Foo { }"

        result = await compare_entry(populated_gateway, "ApexClass", "Foo", ORG_A, ORG_B)

        assert result.verdict is Verdict.DIFFERENT
        assert result.are_equal is False

    @pytest.mark.asyncio
    async def test_Should_FailWithoutPartialContent_When_OrgBFetchFails(self, populated_gateway):
        """A network error on B discards A's successfully fetched content."""
        populated_gateway.fail("fetch_content", ORG_B, EnvironmentUnavailableError("Org B session expired"))

        result = await compare_entry(populated_gateway, "ApexClass", "Foo", ORG_A, ORG_B)

        assert not result.success
        assert result.error == "Org B session expired"
        assert result.error_kind is ErrorKind.CONNECTIVITY
        assert result.failed_environment == ORG_B
        assert result.content_a is None and result.content_b is None
        assert result.verdict is None

    @pytest.mark.asyncio
    async def test_Should_ReportNotFoundDistinctly_When_EntryMissingInB(self, populated_gateway):
        result = await compare_entry(populated_gateway, "ApexClass", "Bar", ORG_A, ORG_B)

        assert result.error_kind is ErrorKind.NOT_FOUND
        assert result.failed_environment == ORG_B

    @pytest.mark.asyncio
    async def test_Should_ReportEnvironmentA_When_BothFail(self, populated_gateway):
        populated_gateway.fail("fetch_content", ORG_A, NotFoundError("gone from A"))
        populated_gateway.fail("fetch_content", ORG_B, NotFoundError("gone from B"))

        result = await compare_entry(populated_gateway, "ApexClass", "Foo", ORG_A, ORG_B)

        assert result.failed_environment == ORG_A
        assert result.error == "gone from A"

    @pytest.mark.asyncio
    async def test_Should_ClassifyUnexpected_When_NonGatewayErrorRaised(self, populated_gateway):
        populated_gateway.fail("fetch_content", ORG_A, RuntimeError("socket closed"))

        result = await compare_entry(populated_gateway, "ApexClass", "Foo", ORG_A, ORG_B)

        assert result.error_kind is ErrorKind.UNEXPECTED
        assert result.error == "socket closed"

    @pytest.mark.asyncio
    async def test_Should_FetchBothSidesConcurrently_When_Comparing(self, populated_gateway):
        """Both fetches are issued before either completes."""
        gate = populated_gateway.pause("fetch_content", ORG_A)

        task = asyncio.ensure_future(compare_entry(populated_gateway, "ApexClass", "Foo", ORG_A, ORG_B))
        for _ in range(5):
            await asyncio.sleep(0)
        issued = [call[1] for call in populated_gateway.calls if call[0] == "fetch_content"]
        gate.set()
        result = await task

        assert sorted(issued) == [ORG_A, ORG_B]
        assert result.success

    @pytest.mark.asyncio
    async def test_Should_PassFilePath_When_ComparingBundleMember(self, populated_gateway):
        populated_gateway.contents[(ORG_A, "LightningComponentBundle", "myCard", "myCard.js")] = "a"
        populated_gateway.contents[(ORG_B, "LightningComponentBundle", "myCard", "myCard.js")] = "b"

        result = await compare_entry(
            populated_gateway, "LightningComponentBundle", "myCard", ORG_A, ORG_B, file_path="myCard.js"
        )

        assert result.file_path == "myCard.js"
        assert result.verdict is Verdict.DIFFERENT
        assert result.language == "javascript"


class TestListCompositeFiles:
    """Test list_composite_files."""

    @pytest.mark.asyncio
    async def test_Should_UnionMemberPaths_When_BothSidesList(self, populated_gateway):
        files = await list_composite_files(populated_gateway, "LightningComponentBundle", "myCard", ORG_A, ORG_B)

        assert {f.path: f.presence for f in files.files} == {
            "myCard.css": Presence.B_ONLY,
            "myCard.html": Presence.A_ONLY,
            "myCard.js": Presence.BOTH,
        }

    @pytest.mark.asyncio
    async def test_Should_Propagate_When_ListingFails(self, populated_gateway):
        populated_gateway.fail("list_member_files", ORG_B, NotFoundError("bundle missing"))

        with pytest.raises(NotFoundError):
            await list_composite_files(populated_gateway, "LightningComponentBundle", "myCard", ORG_A, ORG_B)

    @pytest.mark.asyncio
    async def test_Should_WaitForBothListings_When_OneSideFailsFirst(self, populated_gateway):
        gate = populated_gateway.pause("list_member_files", ORG_B)
        populated_gateway.fail("list_member_files", ORG_A, EnvironmentUnavailableError("Org A expired"))

        task = asyncio.ensure_future(
            list_composite_files(populated_gateway, "LightningComponentBundle", "myCard", ORG_A, ORG_B)
        )
        for _ in range(3):
            await asyncio.sleep(0)
        assert not task.done()

        gate.set()
        with pytest.raises(EnvironmentUnavailableError):
            await task


class TestGatherPair:
    """Test gather_pair ordering and settlement."""

    @pytest.mark.asyncio
    async def test_Should_ReturnBothValuesInOrder_When_BothSucceed(self):
        async def value(result, delay):
            await asyncio.sleep(delay)
            return result

        assert await gather_pair(value("a", 0.01), value("b", 0)) == ("a", "b")

    @pytest.mark.asyncio
    async def test_Should_RaiseFirstSideError_When_BothFail(self):
        async def failing(error, delay):
            await asyncio.sleep(delay)
            raise error

        with pytest.raises(EnvironmentUnavailableError):
            await gather_pair(failing(EnvironmentUnavailableError("A"), 0.01), failing(NotFoundError("B"), 0))

    @pytest.mark.asyncio
    async def test_Should_FinishSlowSide_When_FastSideFails(self):
        finished = []

        async def fail_fast():
            raise NotFoundError("gone")

        async def slow():
            await asyncio.sleep(0.02)
            finished.append("slow")
            return "done"

        with pytest.raises(NotFoundError):
            await gather_pair(fail_fast(), slow())

        assert finished == ["slow"]
        pending = [t for t in asyncio.all_tasks() if t is not asyncio.current_task() and not t.done()]
        assert pending == []


class TestLanguageForCategory:
    """Test syntax hints."""

    @pytest.mark.parametrize(
        "category,language",
        [
            ("ApexClass", "apex"),
            ("ApexTrigger", "apex"),
            ("ApexPage", "html"),
            ("ApexComponent", "html"),
            ("LightningComponentBundle", "javascript"),
            ("AuraDefinitionBundle", "javascript"),
            ("CustomObject", "xml"),
        ],
    )
    def test_Should_MapCategory_When_Known(self, category, language):
        assert language_for_category(category) == language
