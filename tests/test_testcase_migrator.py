"""
Tests for phase 2: test-case migration and shared-step reference resolution.
"""

from identity_mapper import IdentityMapper
from models import SharedStepReference, TestStep, WorkItemKind
from testcase_migrator import PLACEHOLDER_TITLE, TestCaseMigrator, reflected_source_uri
from tests.fakes import FakeSourceProvider, make_test_case
from user_translator import UserTranslator

BASE_URI = "https://dev.azure.com/contoso"


def _migrate(source, destination, mapper, **kwargs):
    migrator = TestCaseMigrator(
        source, destination, UserTranslator(), reflected_base_uri=BASE_URI, **kwargs
    )
    return migrator.migrate("ProjA", "ProjB", mapper)


def _only_test_case(destination):
    (stored,) = destination.of_kind(WorkItemKind.TEST_CASE).values()
    return stored


class TestReflectedIdentifier:
    def test_uri_format(self):
        assert reflected_source_uri(BASE_URI, "ProjA", 200) == f"{BASE_URI}//ProjA/200"

    def test_uri_is_set_on_the_created_item(self, destination):
        source = FakeSourceProvider(test_cases=[make_test_case(200, "T1")])

        _migrate(source, destination, IdentityMapper())

        assert _only_test_case(destination).fields["reflected_source_uri"] == f"{BASE_URI}//ProjA/200"


class TestActionTranslation:
    def test_mapped_reference_points_at_destination_id(self, destination):
        mapper = IdentityMapper()
        mapper.put(100, 5001)
        source = FakeSourceProvider(
            test_cases=[make_test_case(200, "T1", [SharedStepReference(100)])]
        )

        _migrate(source, destination, mapper)

        assert _only_test_case(destination).actions == [SharedStepReference(5001)]

    def test_unresolved_reference_becomes_placeholder_at_same_position(self, destination):
        source = FakeSourceProvider(
            test_cases=[
                make_test_case(
                    200,
                    "T1",
                    [TestStep("first", ""), SharedStepReference(999), TestStep("last", "ok")],
                )
            ]
        )

        report = _migrate(source, destination, IdentityMapper())

        actions = _only_test_case(destination).actions
        assert len(actions) == 3
        assert isinstance(actions[1], TestStep)
        assert "999" in actions[1].title
        assert actions[1].title == PLACEHOLDER_TITLE.format(shared_step_id=999)
        assert actions[2] == TestStep("last", "ok")
        assert report.failed == 0
        assert report.unresolved_references == [(200, 999)]

    def test_order_and_kinds_are_preserved(self, destination, unknown_action):
        mapper = IdentityMapper()
        mapper.put(10, 7010)
        mapper.put(11, 7011)
        source_actions = [
            SharedStepReference(10),
            TestStep("a", "A"),
            unknown_action,
            SharedStepReference(11),
            SharedStepReference(12),
            TestStep("b", ""),
        ]
        source = FakeSourceProvider(test_cases=[make_test_case(200, "T1", source_actions)])

        report = _migrate(source, destination, mapper)

        stored = _only_test_case(destination)
        assert report.records[0].actions == stored.actions
        assert stored.actions == [
            SharedStepReference(7010),
            TestStep("a", "A"),
            SharedStepReference(7011),
            TestStep(PLACEHOLDER_TITLE.format(shared_step_id=12), ""),
            TestStep("b", ""),
        ]

    def test_action_sequence_is_saved_once(self, destination):
        source = FakeSourceProvider(
            test_cases=[make_test_case(200, "T1", [TestStep("a", ""), TestStep("b", "")])]
        )

        _migrate(source, destination, IdentityMapper())

        assert _only_test_case(destination).saves == 1


class TestFailureIsolation:
    def test_failed_test_case_does_not_stop_the_pass(self, destination):
        destination.fail_step_save_titles.add("T2")
        source = FakeSourceProvider(
            test_cases=[make_test_case(200 + i, f"T{i}", [TestStep("s", "")]) for i in range(1, 4)]
        )

        report = _migrate(source, destination, IdentityMapper())

        assert report.attempted == 3
        assert report.succeeded == 2
        assert report.failures[0].source_id == 202
        saved = [s for s in destination.of_kind(WorkItemKind.TEST_CASE).values() if s.saves]
        assert [s.fields["title"] for s in saved] == ["T1", "T3"]
        assert [r.source_id for r in report.records] == [201, 203]
        assert report.records[0].reflected_source_uri == f"{BASE_URI}//ProjA/201"
