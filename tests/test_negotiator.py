"""Tests for StorageNegotiator coverage and assignment."""
import pytest

from ctwizard.core.errors import IncompleteCoverageError, OperatorDeclinedError
from ctwizard.core.negotiator import StorageNegotiator, check_coverage
from ctwizard.models.storage import StorageMount, StoragePool, StorageRequirement
from tests.conftest import ScriptedPrompter


def _pools(*names):
    return [StoragePool(name="local"), StoragePool(name="local-lvm")] + [StoragePool(name=n) for n in names]


class TestCoverage:

    def test_complete_when_every_role_has_one_mount(self, requirements):
        mounts = [StorageMount.for_role("nas-01-media", "media"),
                  StorageMount.for_role("nas-01-backups", "backups")]
        assert check_coverage(requirements, mounts).complete

    @pytest.mark.parametrize("dropped", ["media", "backups"])
    def test_removing_any_role_fails_naming_it(self, requirements, dropped):
        mounts = [StorageMount.for_role(f"nas-01-{role}", role)
                  for role in ("media", "backups") if role != dropped]
        report = check_coverage(requirements, mounts)
        assert not report.complete
        assert report.missing_roles == [dropped]

    def test_duplicate_mount_is_incomplete(self, requirements):
        mounts = [StorageMount.for_role("nas-01-media", "media"),
                  StorageMount.for_role("nas-02-media", "media"),
                  StorageMount.for_role("nas-01-backups", "backups")]
        report = check_coverage(requirements, mounts)
        assert report.duplicated == ["media"]
        assert not report.complete

    def test_none_sentinel_is_ignored(self):
        reqs = [StorageRequirement("none", "Ignore this share"), StorageRequirement("media", "Media")]
        report = check_coverage(reqs, [StorageMount.for_role("nas-01-media", "media")])
        assert report.complete


class TestAutoDetect:

    def test_strict_convention(self, requirements):
        negotiator = StorageNegotiator(ScriptedPrompter())
        mounts = negotiator.auto_detect(requirements, _pools("nas-01-media", "NAS-02-Backups"))
        assert mounts == [StorageMount("nas-01-media", "/mnt/media"),
                          StorageMount("NAS-02-Backups", "/mnt/backups")]

    def test_local_pools_are_excluded(self):
        negotiator = StorageNegotiator(ScriptedPrompter(), nas_hostname="local")
        reqs = [StorageRequirement("media", "")]
        assert negotiator.auto_detect(reqs, [StoragePool(name="local-01-media")]) == []

    def test_strict_ignores_foreign_prefix(self, requirements):
        negotiator = StorageNegotiator(ScriptedPrompter())
        assert negotiator.auto_detect(requirements, _pools("san-01-media")) == []
        relaxed = negotiator.auto_detect(requirements, _pools("san-01-media"), strict=False)
        assert relaxed == [StorageMount("san-01-media", "/mnt/media")]

    def test_first_match_wins(self):
        negotiator = StorageNegotiator(ScriptedPrompter())
        reqs = [StorageRequirement("media", "")]
        mounts = negotiator.auto_detect(reqs, _pools("nas-01-media", "nas-02-media"))
        assert mounts == [StorageMount("nas-01-media", "/mnt/media")]


class TestNegotiate:

    def test_full_auto_detection_needs_only_bulk_accept(self, requirements):
        prompter = ScriptedPrompter([True])
        mounts = StorageNegotiator(prompter).negotiate(
            requirements, _pools("nas-01-media", "nas-01-backups")
        )
        assert [m.path for m in mounts] == ["/mnt/media", "/mnt/backups"]
        assert len(prompter.questions) == 1

    def test_no_requirements_returns_empty(self):
        prompter = ScriptedPrompter()
        reqs = [StorageRequirement("none", "")]
        assert StorageNegotiator(prompter).negotiate(reqs, _pools("nas-01-media")) == []

    def test_relaxed_detection_can_be_accepted(self, requirements):
        prompter = ScriptedPrompter([True])
        mounts = StorageNegotiator(prompter).negotiate(
            requirements, _pools("store-1-media", "store-1-backups")
        )
        assert [m.pool for m in mounts] == ["store-1-media", "store-1-backups"]
        assert "Confirm" in prompter.questions[0]

    def test_missing_role_aborts_after_manual_assignment(self, requirements):
        # only nas-01-media exists: go manual, assign media, backups stays missing
        prompter = ScriptedPrompter([True, 1, True])
        with pytest.raises(IncompleteCoverageError) as exc:
            StorageNegotiator(prompter).negotiate(requirements, _pools("nas-01-media"))

        assert exc.value.missing == ["backups"]
        assert "'backups' is: missing" in prompter.output
        assert "nas-0X-backups" in prompter.output

    def test_refusing_manual_assignment_reports_missing(self, requirements):
        prompter = ScriptedPrompter([False])
        with pytest.raises(IncompleteCoverageError) as exc:
            StorageNegotiator(prompter).negotiate(requirements, _pools("nas-01-media"))
        assert exc.value.missing == ["backups"]

    def test_declining_complete_detection_then_manual_refusal(self, requirements):
        prompter = ScriptedPrompter([False, False])
        with pytest.raises(OperatorDeclinedError):
            StorageNegotiator(prompter).negotiate(requirements, _pools("nas-01-media", "nas-01-backups"))

    def test_manual_assignment_of_irregular_names(self, requirements):
        # nothing detected, go manual
        # pool "films": pick 1 (MEDIA), reject, pick 1 again, confirm
        # pool "archive": options now [BACKUPS, NONE]; pick 1, confirm
        prompter = ScriptedPrompter([True, 1, False, 1, True, 1, True])
        mounts = StorageNegotiator(prompter).negotiate(requirements, _pools("films", "archive"))

        assert mounts == [StorageMount("films", "/mnt/media"), StorageMount("archive", "/mnt/backups")]
        assert "No problem. Try again" in prompter.output

    def test_manual_none_skips_pool(self, requirements):
        # "scratch" -> NONE (option 3), then films -> media, archive -> backups
        prompter = ScriptedPrompter([True, 3, True, 1, True, 1, True])
        mounts = StorageNegotiator(prompter).negotiate(
            requirements, _pools("scratch", "films", "archive")
        )
        assert [m.pool for m in mounts] == ["films", "archive"]

    def test_pools_after_full_assignment_are_skipped(self, requirements):
        prompter = ScriptedPrompter([True, 1, True, 1, True])
        mounts = StorageNegotiator(prompter).negotiate(
            requirements, _pools("films", "archive", "extra")
        )
        assert len(mounts) == 2
        assert prompter.answers == []
